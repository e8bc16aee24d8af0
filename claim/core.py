"""
Core types and pure functions for the allocation ledger.

This module provides the foundational data structures and protocols:
1. Protocols: ValueMedium for the external payment asset, ClaimView for read-only access
2. Immutable data structures: Term, ClaimConfig, OperationRecord
3. Exceptions: ClaimError and MediumError hierarchies
4. The Share Function used for proportional vesting percentages

All functions in this module are pure. Nothing here mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Identity that deploys the ledger and owns it until ownership is transferred.
DEFAULT_OWNER = "deployer"

# Custody identity of a ledger inside its value-transfer medium.
DEFAULT_LEDGER_NAME = "claim"

# Allocation units carry 9 decimals: 10**9 base units make one whole unit.
UNIT_DECIMALS = 9
ONE_UNIT = 10 ** UNIT_DECIMALS

# Percent scale. A participant holding PERCENT_CAP owns 100% of the vesting
# distribution.
PERCENT_CAP = 1_000_000

# Global cap on allocated units, in base units.
UNIT_CAP = 140_000 * ONE_UNIT

# Smallest purchase accepted (0.14 units). With the default caps this is the
# smallest amount whose share does not truncate to zero.
MIN_PURCHASE = 140_000_000

# Unit price used by the deployment helper (0.01 of the medium's display unit).
DEFAULT_UNIT_PRICE = 100


# ============================================================================
# ENUMS
# ============================================================================

class ClaimerKind(Enum):
    """
    Vesting schedule a participant is enrolled in.

    NONE is the zero value. A kind may be assigned once; after that it can be
    restated but never changed to a different kind.
    """
    NONE = 0
    INVESTOR = 1
    PUBLIC = 2
    DEVELOPER = 3
    ADVISER = 4


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ClaimError(Exception):
    """Base exception for all allocation-ledger rejections."""
    pass


class NotAuthorized(ClaimError):
    """Raised when a restricted operation is called by someone other than the owner."""
    pass


class SaleClosed(ClaimError):
    """Raised when a purchase is attempted while the sale is closed."""
    pass


class NotWhitelisted(ClaimError):
    """Raised when the beneficiary has no remaining whitelist allowance."""
    pass


class ExceedsAllowance(ClaimError):
    """Raised when a purchase asks for more units than the whitelist allows."""
    pass


class BelowMinimum(ClaimError):
    """Raised when a purchase is smaller than the minimum purchase threshold."""
    pass


class PaymentTransferFailed(ClaimError):
    """Raised when the value-transfer medium refuses the purchase payment."""
    pass


class CapacityExceeded(ClaimError):
    """Raised when a mutation would push a running total past its global cap."""
    pass


class ImmutableKind(ClaimError):
    """Raised when a participant's claimer kind would change once set."""
    pass


class NothingToMigrate(ClaimError):
    """Raised when an identity with an empty term requests a migration."""
    pass


class NoPushRecorded(ClaimError):
    """Raised when a pull does not match a pending migration for the caller."""
    pass


class DestinationOccupied(ClaimError):
    """Raised when a migration would overwrite an existing term."""
    pass


class WithdrawalFailed(ClaimError):
    """Raised when a custodial withdrawal is refused by the asset."""
    pass


class MediumError(Exception):
    """Base exception for value-transfer medium failures."""
    pass


class InsufficientBalance(MediumError):
    """Raised when a transfer would take a balance below zero."""
    pass


class InsufficientAllowance(MediumError):
    """Raised when a spender moves more than the payer approved."""
    pass


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class ValueMedium(Protocol):
    """
    External asset used to pay for allocations and held in ledger custody.

    Amounts are opaque integers in the medium's smallest unit; the ledger
    never assumes a decimals convention. A transfer either moves the full
    amount and returns True, or moves nothing and returns False / raises.
    """

    def transfer(self, sender: str, payee: str, amount: int) -> bool:
        """Move amount from sender's own balance to payee."""
        ...

    def transfer_from(self, spender: str, payer: str, payee: str, amount: int) -> bool:
        """Move amount from payer to payee on the strength of payer's approval of spender."""
        ...

    def balance_of(self, identity: str) -> int:
        """Return the balance held by identity."""
        ...


@runtime_checkable
class ClaimView(Protocol):
    """
    Read-only interface to allocation-ledger state.

    Functions accepting a ClaimView declare that they only query. ClaimLedger
    implements this protocol alongside its mutating operations.
    """

    @property
    def unit_price(self) -> int:
        ...

    @property
    def value_medium(self) -> ValueMedium:
        ...

    @property
    def sale_open(self) -> bool:
        ...

    def get_term(self, participant: str) -> 'Term':
        ...

    def whitelist_of(self, participant: str) -> int:
        ...

    def pending_migration_of(self, source: str) -> Optional[str]:
        ...

    def share(self, amount: int, total: int, scale: int) -> int:
        ...


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Term:
    """
    Vesting terms held by one participant.

    Attributes:
        percent: Share of the total vesting distribution, on the PERCENT_CAP scale.
        max_units: Cumulative units the participant may claim, in base units.
        kind: Vesting schedule classification.

    Terms are immutable; the ledger replaces a participant's Term wholesale.
    """
    percent: int = 0
    max_units: int = 0
    kind: ClaimerKind = ClaimerKind.NONE

    def __post_init__(self):
        if self.percent < 0:
            raise ValueError(f"Term percent cannot be negative, got {self.percent}")
        if self.max_units < 0:
            raise ValueError(f"Term max_units cannot be negative, got {self.max_units}")
        if not isinstance(self.kind, ClaimerKind):
            raise ValueError(f"Term kind must be ClaimerKind, got {type(self.kind)}")

    @classmethod
    def zero(cls) -> Term:
        return cls()

    @property
    def is_zero(self) -> bool:
        """True when the participant holds nothing that could be migrated."""
        return self.percent == 0 and self.max_units == 0 and self.kind is ClaimerKind.NONE

    def __repr__(self) -> str:
        return f"Term({self.percent} pct, {self.max_units} units, {self.kind.name})"


@dataclass(frozen=True, slots=True)
class ClaimConfig:
    """
    Environment-specific tuning values for a ledger.

    Attributes:
        percent_cap: Upper bound of the summed percent over all participants.
        unit_cap: Upper bound of the summed max_units over all participants.
        min_purchase: Smallest purchase accepted, in base units.
        unit_decimals: Decimals of one allocation unit (informational).
    """
    percent_cap: int = PERCENT_CAP
    unit_cap: int = UNIT_CAP
    min_purchase: int = MIN_PURCHASE
    unit_decimals: int = UNIT_DECIMALS

    def __post_init__(self):
        # The Share Function divides by unit_cap, so neither cap may be zero.
        if self.percent_cap <= 0:
            raise ValueError(f"percent_cap must be positive, got {self.percent_cap}")
        if self.unit_cap <= 0:
            raise ValueError(f"unit_cap must be positive, got {self.unit_cap}")
        if self.min_purchase < 0:
            raise ValueError(f"min_purchase cannot be negative, got {self.min_purchase}")
        if self.unit_decimals < 0:
            raise ValueError(f"unit_decimals cannot be negative, got {self.unit_decimals}")


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """
    Executed, immutable record of one applied mutating operation.

    Attributes:
        sequence: Monotonic position within the ledger's operation log.
        operation: Operation name (e.g. "set_term", "buy_allocation").
        caller: Identity that invoked the operation.
        details: Operation arguments and derived values (e.g. share increment).
        ledger_name: Name of the ledger that applied the operation.
    """
    sequence: int
    operation: str
    caller: str
    details: Mapping[str, Any] = field(default_factory=dict)
    ledger_name: str = DEFAULT_LEDGER_NAME

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={_describe(v)}" for k, v in self.details.items())
        return f"Op#{self.sequence} {self.operation}({args}) by {self.caller}"


def _describe(value: Any) -> str:
    """Short display form for operation details."""
    if isinstance(value, Enum):
        return value.name
    return repr(value) if isinstance(value, str) else str(value)


# ============================================================================
# SHARE FUNCTION
# ============================================================================

def share(amount: int, total: int, scale: int) -> int:
    """
    Proportional share of amount against total, expressed on scale.

    Computes floor(amount * scale / total) in exact integer arithmetic.
    Truncation is the rounding policy; callers must not expect rounding up.

    Args:
        amount: Numerator quantity.
        total: Denominator quantity. Must be non-zero.
        scale: Target scale of the result.

    Returns:
        The truncated share.

    Raises:
        ZeroDivisionError: If total is zero.

    Example:
        share(700000, 70000000, 50000)  # 500
    """
    if total == 0:
        raise ZeroDivisionError("share() total must be non-zero")
    return amount * scale // total


def term_totals(terms: Mapping[str, Term]) -> Dict[str, int]:
    """
    Recompute the global running totals by scanning every Term.

    Returns:
        {"percent": summed percent, "units": summed max_units}
    """
    return {
        'percent': sum(t.percent for t in terms.values()),
        'units': sum(t.max_units for t in terms.values()),
    }
