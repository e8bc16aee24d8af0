"""
test_withdraw.py - Unit tests for draining ledger custody

Tests:
- Owner moves collected payments out
- Withdrawal beyond custody fails with balances unchanged
- Withdrawal is independent of Terms and whitelist
"""

import pytest
from claim import (
    Token, NotAuthorized, WithdrawalFailed, InsufficientBalance, ONE_UNIT,
)
from tests.fake_medium import RefusingMedium


@pytest.fixture
def collected(dai, open_sale):
    """Ledger holding the payment for a 1000-unit purchase."""
    open_sale.buy_allocation("investor", "investor", 1000 * ONE_UNIT)
    return open_sale


class TestWithdraw:
    """Tests for withdraw()."""

    def test_withdraw_all(self, dai, collected):
        held = dai.balance_of(collected.address)
        collected.withdraw("deployer", "treasury", dai, held)
        assert dai.balance_of("treasury") == held
        assert dai.balance_of(collected.address) == 0

    def test_withdraw_part(self, dai, collected):
        collected.withdraw("deployer", "treasury", dai, 1000)
        assert dai.balance_of("treasury") == 1000
        assert dai.balance_of(collected.address) == 1000 * ONE_UNIT * 100 - 1000

    def test_beyond_custody_fails(self, dai, collected):
        held = dai.balance_of(collected.address)
        with pytest.raises(WithdrawalFailed) as excinfo:
            collected.withdraw("deployer", "treasury", dai, held + 1)
        assert isinstance(excinfo.value.__cause__, InsufficientBalance)
        assert dai.balance_of(collected.address) == held
        assert dai.balance_of("treasury") == 0

    def test_empty_custody_fails(self, dai, claim):
        with pytest.raises(WithdrawalFailed):
            claim.withdraw("deployer", "treasury", dai, 1)

    def test_zero_withdrawal_succeeds(self, dai, claim):
        claim.withdraw("deployer", "treasury", dai, 0)
        assert claim.operation_log[-1].operation == "withdraw"

    def test_non_owner_fails(self, dai, collected):
        held = dai.balance_of(collected.address)
        with pytest.raises(NotAuthorized):
            collected.withdraw("investor", "investor", dai, held)
        assert dai.balance_of(collected.address) == held

    def test_other_asset(self, claim):
        # Anything sent to the ledger's identity can be recovered
        stray = Token("Stray", "STR", 6)
        stray.mint(claim.address, 500)
        claim.withdraw("deployer", "treasury", stray, 500)
        assert stray.balance_of("treasury") == 500

    def test_refused_transfer_fails(self, claim):
        medium = RefusingMedium(balances={"claim": 500})
        with pytest.raises(WithdrawalFailed, match="refused"):
            claim.withdraw("deployer", "treasury", medium, 100)
        assert medium.attempts == [('transfer', "claim", "treasury", 100)]
        assert claim.operation_log == []

    def test_terms_and_whitelist_untouched(self, dai, collected):
        term = collected.get_term("investor")
        collected.set_whitelist_allowance("deployer", "developer", 10)
        held = dai.balance_of(collected.address)
        collected.withdraw("deployer", "treasury", dai, held)
        assert collected.get_term("investor") == term
        assert collected.whitelist_of("developer") == 10
        assert collected.total_units_allocated == 1000 * ONE_UNIT

    def test_negative_amount_raises(self, dai, claim):
        with pytest.raises(ValueError):
            claim.withdraw("deployer", "treasury", dai, -1)

    def test_logged(self, dai, collected):
        collected.withdraw("deployer", "treasury", dai, 10)
        record = collected.operation_log[-1]
        assert record.details == {"destination": "treasury", "amount": 10}
