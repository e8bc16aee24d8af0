"""
conftest.py - Shared pytest fixtures for allocation-ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- A payment token (mock DAI) and an empty ledger
- A funded ledger: purchasers hold DAI and approved the ledger to spend it
- An open sale with a whitelisted investor
"""

import pytest

from claim import ClaimLedger, ClaimConfig, Token, ONE_UNIT


OWNER = "deployer"
INVESTOR = "investor"
DEVELOPER = "developer"
ADVISER = "adviser"

DAI = 10 ** 18
FUNDING = 100_000 * DAI
UNIT_PRICE = 100


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def dai():
    """Mock DAI with 18 decimals and no holders."""
    return Token("Dai", "DAI", 18)


@pytest.fixture
def claim(dai):
    """Fresh ledger at the deployment price, sale closed."""
    return ClaimLedger(UNIT_PRICE, dai, owner=OWNER, verbose=False)


@pytest.fixture
def fund(dai, claim):
    """Mint DAI to a holder and approve the ledger to spend all of it."""
    def _fund(holder: str, amount: int = FUNDING) -> None:
        dai.mint(holder, amount)
        dai.approve(holder, claim.address, amount)
    return _fund


@pytest.fixture
def funded(fund, claim):
    """Ledger whose investor and developer hold approved DAI."""
    fund(INVESTOR)
    fund(DEVELOPER)
    return claim


@pytest.fixture
def open_sale(funded):
    """Funded ledger with the sale open and the investor whitelisted for 1000 units."""
    funded.toggle_sale_open(OWNER)
    funded.set_whitelist_allowance(OWNER, INVESTOR, 1000 * ONE_UNIT)
    return funded


@pytest.fixture
def small_config():
    """Tight caps so capacity limits are easy to reach."""
    return ClaimConfig(percent_cap=1_000, unit_cap=10_000, min_purchase=10)
