"""
fake_medium.py - Test helpers for ValueMedium

Minimal ValueMedium implementations for exercising the ledger's transfer
failure paths without a full Token, plus snapshot comparison.
"""

from __future__ import annotations
from typing import Any, Dict, List, Tuple

from claim import MediumError


class RefusingMedium:
    """
    ValueMedium that declines every transfer by returning False.

    Records each attempt so tests can assert the ledger asked for payment.

    Example:
        medium = RefusingMedium(balances={'claim': 500})
        medium.transfer('claim', 'treasury', 100)   # False
        medium.attempts                             # [('transfer', 'claim', 'treasury', 100)]
    """

    def __init__(self, balances: Dict[str, int] = None):
        self._balances = balances or {}
        self.attempts: List[Tuple] = []

    def transfer(self, sender: str, payee: str, amount: int) -> bool:
        self.attempts.append(('transfer', sender, payee, amount))
        return False

    def transfer_from(self, spender: str, payer: str, payee: str, amount: int) -> bool:
        self.attempts.append(('transfer_from', payer, payee, amount))
        return False

    def balance_of(self, identity: str) -> int:
        return self._balances.get(identity, 0)


class FailingMedium(RefusingMedium):
    """ValueMedium whose transfers raise MediumError (a reverting asset)."""

    def transfer(self, sender: str, payee: str, amount: int) -> bool:
        self.attempts.append(('transfer', sender, payee, amount))
        raise MediumError("transfer reverted")

    def transfer_from(self, spender: str, payer: str, payee: str, amount: int) -> bool:
        self.attempts.append(('transfer_from', payer, payee, amount))
        raise MediumError("transferFrom reverted")


def compare_snapshots(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Any]:
    """Return the snapshot keys whose values differ, mapped to (before, after)."""
    keys = set(before) | set(after)
    return {k: (before.get(k), after.get(k)) for k in sorted(keys) if before.get(k) != after.get(k)}
