"""
medium.py - In-memory value-transfer medium

Token is an ERC-20 style asset: integer balances per identity, approvals
from holders to spenders, and all-or-nothing transfers. It is the reference
ValueMedium used by deployments, tests and the demo, standing in for a real
stablecoin such as DAI.

Key properties:
    - Every transfer is validated fully before any balance changes
    - Supply changes only through mint(); transfers conserve total supply
    - Mutations are serialized with a lock, so concurrent callers cannot
      interleave a balance check with another transfer
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Tuple
import threading

from .core import InsufficientAllowance, InsufficientBalance


@dataclass(frozen=True, slots=True)
class TokenTransfer:
    """
    A single applied movement of token value.

    Attributes:
        amount: Quantity moved, in the token's smallest unit.
        source: Identity debited ("" for a mint).
        dest: Identity credited.
        spender: Identity that initiated the transfer on source's behalf, if any.
    """
    amount: int
    source: str
    dest: str
    spender: str = ""

    def __repr__(self) -> str:
        via = f" via {self.spender}" if self.spender else ""
        return f"TokenTransfer({self.amount}: {self.source or 'mint'}→{self.dest}{via})"


class Token:
    """
    Fungible token implementing the ValueMedium protocol.

    Example:
        dai = Token("Dai", "DAI", 18)
        dai.mint("investor", 100_000 * 10**18)
        dai.approve("investor", "claim", 100_000 * 10**18)
        dai.transfer_from("claim", "investor", "claim", 10**18)
    """

    def __init__(self, name: str, symbol: str, decimals: int = 18, verbose: bool = False):
        if decimals < 0:
            raise ValueError(f"decimals cannot be negative, got {decimals}")
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.verbose = verbose
        self.balances: Dict[str, int] = defaultdict(int)
        self.allowances: Dict[Tuple[str, str], int] = defaultdict(int)
        self.transfer_log: List[TokenTransfer] = []
        self._total_supply = 0
        self._lock = threading.RLock()

    # ========================================================================
    # QUERIES
    # ========================================================================

    def balance_of(self, identity: str) -> int:
        return self.balances.get(identity, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def total_supply(self) -> int:
        return self._total_supply

    def holders(self) -> Dict[str, int]:
        """Return all non-zero balances."""
        return {who: bal for who, bal in self.balances.items() if bal}

    # ========================================================================
    # MUTATIONS
    # ========================================================================

    def mint(self, to: str, amount: int) -> None:
        """Create amount new tokens in to's balance."""
        self._check_amount(amount)
        with self._lock:
            self.balances[to] += amount
            self._total_supply += amount
            self.transfer_log.append(TokenTransfer(amount, "", to))
        if self.verbose:
            print(f"✓ {self.symbol} mint {amount} → {to}")

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set (not add) the amount spender may move out of owner's balance."""
        self._check_amount(amount)
        with self._lock:
            self.allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, payee: str, amount: int) -> bool:
        """
        Move amount from sender to payee.

        Raises:
            InsufficientBalance: If sender holds less than amount.
        """
        self._check_amount(amount)
        with self._lock:
            self._require_balance(sender, amount)
            self._move(sender, payee, amount, spender="")
        return True

    def transfer_from(self, spender: str, payer: str, payee: str, amount: int) -> bool:
        """
        Move amount from payer to payee, spending payer's approval of spender.

        Both the allowance and the balance are checked before either changes.

        Raises:
            InsufficientAllowance: If payer approved spender for less than amount.
            InsufficientBalance: If payer holds less than amount.
        """
        self._check_amount(amount)
        with self._lock:
            approved = self.allowance(payer, spender)
            if approved < amount:
                self._reject(f"allowance {payer}→{spender}: {approved} < {amount}")
                raise InsufficientAllowance(
                    f"{spender} may move {approved} {self.symbol} from {payer}, requested {amount}"
                )
            self._require_balance(payer, amount)
            self.allowances[(payer, spender)] = approved - amount
            self._move(payer, payee, amount, spender=spender)
        return True

    # ========================================================================
    # INTERNALS
    # ========================================================================

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ValueError(f"Token amounts must be int, got {type(amount)}")
        if amount < 0:
            raise ValueError(f"Token amounts cannot be negative, got {amount}")

    def _require_balance(self, holder: str, amount: int) -> None:
        held = self.balance_of(holder)
        if held < amount:
            self._reject(f"{holder} {self.symbol}: {held} < {amount}")
            raise InsufficientBalance(f"{holder} holds {held} {self.symbol}, needs {amount}")

    def _move(self, source: str, dest: str, amount: int, spender: str) -> None:
        self.balances[source] -= amount
        self.balances[dest] += amount
        record = TokenTransfer(amount, source, dest, spender)
        self.transfer_log.append(record)
        if self.verbose:
            print(f"✓ {self.symbol} {record!r}")

    def _reject(self, reason: str) -> None:
        if self.verbose:
            print(f"✗ {self.symbol} REJECTED: {reason}")

    def __repr__(self) -> str:
        return f"Token({self.symbol}, decimals={self.decimals}, supply={self._total_supply})"
