"""
claim.py - Token-sale and vesting allocation ledger

The ClaimLedger class owns all allocation state and is the only module that
mutates it. It tracks, for a fixed pool of capacity, which participants may
buy or receive allocation units, what they hold, and their share of the
vesting distribution.

Key responsibilities:
    - Implements ClaimView protocol for read-only access
    - Guards administrative operations behind a single owner identity
    - Enforces the global percent and unit caps across all participants
    - Sells whitelisted allocations against an external ValueMedium
    - Runs the two-phase identity migration protocol
    - Always validates before writing, and always logs applied operations

Every mutating operation runs under one lock from first check to last write,
and performs all checks before the first write. A rejected operation raises a
ClaimError subclass and leaves no trace in state or in the operation log.
"""

from __future__ import annotations
from functools import wraps
from typing import Any, Callable, Dict, List, Optional
import threading

from .core import (
    # Types
    Term, ClaimConfig, ClaimerKind, OperationRecord, ValueMedium,
    # Constants
    DEFAULT_OWNER, DEFAULT_LEDGER_NAME,
    # Exceptions
    ClaimError, NotAuthorized, SaleClosed, NotWhitelisted, ExceedsAllowance,
    BelowMinimum, PaymentTransferFailed, CapacityExceeded, ImmutableKind,
    NothingToMigrate, DestinationOccupied, WithdrawalFailed,
    # Pure functions
    share, term_totals,
)
from .migration import MigrationBook, MigrationState


def _serialized(method: Callable) -> Callable:
    """Run a mutating operation under the ledger lock and report rejections."""
    @wraps(method)
    def wrapper(self: ClaimLedger, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except ClaimError as exc:
                if self.verbose:
                    print(f"✗ REJECTED {method.__name__}: {type(exc).__name__}: {exc}")
                raise
    return wrapper


class ClaimLedger:
    """
    Allocation ledger for a token sale with vesting terms.

    Implements the ClaimView protocol, so it can be handed to code that only
    needs to query.

    Design Principles:
        - Always validates: each operation checks identity, sale status,
          whitelist, capacity and kind immutability before writing anything.
        - Running totals are a cache of the sum over all Terms. They are only
          ever changed together with a Term, by the exact delta.
        - Payments and withdrawals go through the value medium inside a
          scoped attempt; a refused transfer aborts the whole operation.

    Thread Safety:
        Mutating operations are serialized with a per-ledger lock. Queries
        that iterate Terms or the whitelist take the same lock.

    Example:
        dai = Token("Dai", "DAI", 18)
        claim = ClaimLedger(100, dai, owner="deployer")
        claim.toggle_sale_open("deployer")
        claim.set_whitelist_allowance("deployer", "investor", 1000 * ONE_UNIT)
        claim.buy_allocation("investor", "investor", 500 * ONE_UNIT)
    """

    def __init__(
        self,
        unit_price: int,
        value_medium: ValueMedium,
        owner: str = DEFAULT_OWNER,
        name: str = DEFAULT_LEDGER_NAME,
        config: Optional[ClaimConfig] = None,
        verbose: bool = True,
    ):
        """
        Create a ledger.

        Args:
            unit_price: Price of one base unit, in the medium's smallest unit
            value_medium: Asset accepted as payment
            owner: Administrative identity (the deployer)
            name: Ledger identifier; also its custody identity in the medium
            config: Cap and threshold configuration (default: ClaimConfig())
            verbose: Print applied and rejected operations (default: True)
        """
        self._check_non_negative(unit_price=unit_price)
        self.name = name
        self.config = config or ClaimConfig()
        self.verbose = verbose
        self._owner = owner
        self._unit_price = unit_price
        self._value_medium = value_medium
        self._sale_open = False
        self.terms: Dict[str, Term] = {}
        self.whitelist: Dict[str, int] = {}
        self.migrations = MigrationBook()
        self._total_percent = 0
        self._total_units = 0
        self.operation_log: List[OperationRecord] = []
        self._next_sequence = 0
        self._lock = threading.RLock()

    # ========================================================================
    # ClaimView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def address(self) -> str:
        """Identity under which the ledger holds custody in a value medium."""
        return self.name

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def unit_price(self) -> int:
        return self._unit_price

    @property
    def value_medium(self) -> ValueMedium:
        return self._value_medium

    @property
    def sale_open(self) -> bool:
        return self._sale_open

    @property
    def total_percent_allocated(self) -> int:
        return self._total_percent

    @property
    def total_units_allocated(self) -> int:
        return self._total_units

    def get_term(self, participant: str) -> Term:
        """Return participant's Term; identities never referenced hold Term.zero()."""
        return self.terms.get(participant, Term.zero())

    def whitelist_of(self, participant: str) -> int:
        """Remaining units participant may still buy (0 if never whitelisted)."""
        return self.whitelist.get(participant, 0)

    def pending_migration_of(self, source: str) -> Optional[str]:
        """Destination source has pushed its allocation to, or None."""
        return self.migrations.destination_of(source)

    def migration_state(self, source: str) -> MigrationState:
        return self.migrations.state_of(source)

    def list_participants(self) -> List[str]:
        """Identities currently holding a non-zero Term, sorted."""
        with self._lock:
            return sorted(self.terms)

    @staticmethod
    def share(amount: int, total: int, scale: int) -> int:
        """Share Function, see claim.core.share."""
        return share(amount, total, scale)

    def payment_for(self, units: int) -> int:
        """Amount of the value medium a purchase of units costs at the current price."""
        return units * self._unit_price

    def verify_totals(self) -> Dict[str, Any]:
        """
        Check that the running totals match a full scan of all Terms.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the cached totals match and respect the caps
            - 'running': {"percent", "units"} as cached
            - 'recomputed': {"percent", "units"} from scanning Terms
            - 'discrepancies': List of human-readable problems

        Example:
            result = claim.verify_totals()
            assert result['valid'], result['discrepancies']
        """
        with self._lock:
            running = {'percent': self._total_percent, 'units': self._total_units}
            recomputed = term_totals(self.terms)
        discrepancies = []
        for key in ('percent', 'units'):
            if running[key] != recomputed[key]:
                discrepancies.append(
                    f"{key}: running total {running[key]} != recomputed {recomputed[key]}"
                )
        if running['percent'] > self.config.percent_cap:
            discrepancies.append(
                f"percent: {running['percent']} > cap {self.config.percent_cap}"
            )
        if running['units'] > self.config.unit_cap:
            discrepancies.append(f"units: {running['units']} > cap {self.config.unit_cap}")
        return {
            'valid': not discrepancies,
            'running': running,
            'recomputed': recomputed,
            'discrepancies': discrepancies,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy of all ledger state, for comparison and display."""
        with self._lock:
            return {
                'owner': self._owner,
                'unit_price': self._unit_price,
                'value_medium': self._describe_medium(),
                'sale_open': self._sale_open,
                'total_percent': self._total_percent,
                'total_units': self._total_units,
                'terms': dict(self.terms),
                'whitelist': dict(self.whitelist),
                'pending': {s: p.destination for s, p in self.migrations.pending().items()},
            }

    # ========================================================================
    # ADMINISTRATION (Mutating, owner only)
    # ========================================================================

    @_serialized
    def set_unit_price(self, caller: str, new_price: int) -> None:
        self._only_owner(caller)
        self._check_non_negative(new_price=new_price)
        self._unit_price = new_price
        self._record("set_unit_price", caller, new_price=new_price)

    @_serialized
    def set_value_medium(self, caller: str, new_medium: ValueMedium) -> None:
        self._only_owner(caller)
        self._value_medium = new_medium
        self._record("set_value_medium", caller, new_medium=new_medium)

    @_serialized
    def toggle_sale_open(self, caller: str) -> bool:
        """Flip the sale gate. Returns the new status."""
        self._only_owner(caller)
        self._sale_open = not self._sale_open
        self._record("toggle_sale_open", caller, sale_open=self._sale_open)
        return self._sale_open

    @_serialized
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._only_owner(caller)
        if not new_owner or not new_owner.strip():
            raise ValueError("New owner cannot be empty")
        self._owner = new_owner
        self._record("transfer_ownership", caller, new_owner=new_owner)

    @_serialized
    def set_whitelist_allowance(self, caller: str, participant: str, amount: int) -> None:
        """Set (not add to) the units participant may still purchase."""
        self._only_owner(caller)
        self._check_non_negative(amount=amount)
        if amount:
            self.whitelist[participant] = amount
        else:
            self.whitelist.pop(participant, None)
        self._record("set_whitelist_allowance", caller, participant=participant, amount=amount)

    @_serialized
    def set_term(
        self,
        caller: str,
        participant: str,
        percent: int,
        max_units: int,
        kind: ClaimerKind,
    ) -> Term:
        """
        Replace participant's Term.

        The participant's current values are swapped out of the running totals
        before the caps are checked, so lowering a Term always succeeds.

        Args:
            caller: Must be the owner
            participant: Identity whose Term is set
            percent: New share, on the percent-cap scale
            max_units: New cumulative claimable units
            kind: Claimer kind; must equal the current kind once one is set

        Returns:
            The new Term

        Raises:
            NotAuthorized: If caller is not the owner
            CapacityExceeded: If either running total would pass its cap
            ImmutableKind: If a different kind is already set
        """
        self._only_owner(caller)
        self._check_non_negative(percent=percent, max_units=max_units)
        new_term = Term(percent=percent, max_units=max_units, kind=kind)
        current = self.get_term(participant)
        self._check_capacity(
            self._total_percent - current.percent + percent,
            self._total_units - current.max_units + max_units,
        )
        if current.kind is not ClaimerKind.NONE and kind is not current.kind:
            raise ImmutableKind(
                f"{participant} is already {current.kind.name}, cannot become {kind.name}"
            )
        self._adjust_term(participant, new_term)
        self._record(
            "set_term", caller,
            participant=participant, percent=percent, max_units=max_units, kind=kind,
        )
        return new_term

    @_serialized
    def withdraw(self, caller: str, destination: str, asset: ValueMedium, amount: int) -> None:
        """
        Move amount of asset out of ledger custody to destination.

        Independent of Terms and whitelist; it only drains custody.

        Raises:
            NotAuthorized: If caller is not the owner
            WithdrawalFailed: If the asset refuses the transfer
        """
        self._only_owner(caller)
        self._check_non_negative(amount=amount)
        self._attempt_transfer(
            lambda: asset.transfer(self.address, destination, amount),
            WithdrawalFailed,
            f"withdrawal of {amount} to {destination}",
        )
        self._record("withdraw", caller, destination=destination, amount=amount)

    # ========================================================================
    # PURCHASE (Mutating, public)
    # ========================================================================

    @_serialized
    def buy_allocation(self, caller: str, beneficiary: str, units: int) -> Term:
        """
        Buy units for beneficiary on the public schedule; caller pays.

        See _buy() for the checks performed. Returns beneficiary's new Term.
        """
        return self._buy("buy_allocation", caller, beneficiary, units, ClaimerKind.PUBLIC)

    @_serialized
    def buy_investors_allocation(self, caller: str, beneficiary: str, units: int) -> Term:
        """Buy units for beneficiary on the investor schedule; caller pays."""
        return self._buy(
            "buy_investors_allocation", caller, beneficiary, units, ClaimerKind.INVESTOR
        )

    def _buy(
        self,
        operation: str,
        caller: str,
        beneficiary: str,
        units: int,
        default_kind: ClaimerKind,
    ) -> Term:
        """
        Validate, collect payment, then credit beneficiary.

        Checks performed, in order:
        1. Sale is open
        2. Beneficiary has a whitelist allowance
        3. units does not exceed that allowance
        4. units meets the minimum purchase
        5. The running totals stay within their caps
        6. The value medium accepts the payment from caller

        Purchases accumulate into the existing Term. The beneficiary's kind is
        set to default_kind only if it is still NONE.
        """
        self._check_non_negative(units=units)
        if not self._sale_open:
            raise SaleClosed("Sale is closed")
        remaining = self.whitelist_of(beneficiary)
        if remaining == 0:
            raise NotWhitelisted("Address is not whitelisted")
        if units > remaining:
            raise ExceedsAllowance("Cannot buy more than allowed")
        if units < self.config.min_purchase:
            raise BelowMinimum(f"Purchase of {units} is below minimum {self.config.min_purchase}")

        increment = share(units, self.config.unit_cap, self.config.percent_cap)
        self._check_capacity(self._total_percent + increment, self._total_units + units)

        payment = self.payment_for(units)
        self._attempt_transfer(
            lambda: self._value_medium.transfer_from(self.address, caller, self.address, payment),
            PaymentTransferFailed,
            f"payment of {payment} from {caller}",
        )

        # Payment is settled; nothing below can fail.
        if remaining == units:
            del self.whitelist[beneficiary]
        else:
            self.whitelist[beneficiary] = remaining - units
        current = self.get_term(beneficiary)
        kind = default_kind if current.kind is ClaimerKind.NONE else current.kind
        new_term = Term(
            percent=current.percent + increment,
            max_units=current.max_units + units,
            kind=kind,
        )
        self._adjust_term(beneficiary, new_term)
        self._record(
            operation, caller,
            beneficiary=beneficiary, units=units, payment=payment, percent=increment,
        )
        return new_term

    # ========================================================================
    # IDENTITY MIGRATION (Mutating, public)
    # ========================================================================

    @_serialized
    def push_migration(self, caller: str, destination: str) -> None:
        """
        Offer caller's whole Term to destination.

        Replaces any earlier push by caller. The destination is checked only
        when it pulls.

        Raises:
            NothingToMigrate: If caller's Term is zero
        """
        if self.get_term(caller).is_zero:
            raise NothingToMigrate(f"{caller} holds no allocation")
        self.migrations.push(caller, destination)
        self._record("push_migration", caller, destination=destination)

    @_serialized
    def pull_migration(self, caller: str, source: str) -> Term:
        """
        Claim the Term source pushed to caller.

        The Term moves verbatim and source reverts to Term.zero(). The running
        totals are untouched: the allocation changes hands, it is not created
        or destroyed.

        Returns:
            The Term now held by caller

        Raises:
            NoPushRecorded: If source has not pushed to caller
            DestinationOccupied: If caller already holds a non-zero Term
        """
        self.migrations.require_claim(source, caller)
        if not self.get_term(caller).is_zero:
            raise DestinationOccupied(f"{caller} already holds an allocation")
        moved = self.terms.pop(source, Term.zero())
        if not moved.is_zero:
            self.terms[caller] = moved
        self.migrations.clear(source)
        self._record("pull_migration", caller, source=source, percent=moved.percent,
                     max_units=moved.max_units, kind=moved.kind)
        return moved

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _only_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise NotAuthorized(f"{caller} is not the owner")

    @staticmethod
    def _check_non_negative(**values: int) -> None:
        for label, value in values.items():
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{label} must be int, got {type(value)}")
            if value < 0:
                raise ValueError(f"{label} cannot be negative, got {value}")

    def _describe_medium(self) -> str:
        medium = self._value_medium
        return getattr(medium, 'symbol', None) or repr(medium)

    def _check_capacity(self, percent_total: int, units_total: int) -> None:
        if percent_total > self.config.percent_cap:
            raise CapacityExceeded(
                f"percent total {percent_total} > cap {self.config.percent_cap}"
            )
        if units_total > self.config.unit_cap:
            raise CapacityExceeded(f"unit total {units_total} > cap {self.config.unit_cap}")

    def _adjust_term(self, participant: str, new_term: Term) -> None:
        """
        Replace participant's Term and move the running totals by the delta.

        The only place Terms and totals change together. Callers must have
        checked the caps already.
        """
        old_term = self.get_term(participant)
        self._total_percent += new_term.percent - old_term.percent
        self._total_units += new_term.max_units - old_term.max_units
        if new_term.is_zero:
            self.terms.pop(participant, None)
        else:
            self.terms[participant] = new_term

    @staticmethod
    def _attempt_transfer(
        action: Callable[[], bool],
        failure: type,
        description: str,
    ) -> None:
        """Run one value-medium transfer; any refusal becomes `failure`."""
        try:
            accepted = action()
        except Exception as exc:
            raise failure(f"{description} failed: {exc}") from exc
        if not accepted:
            raise failure(f"{description} was refused")

    def _record(self, operation: str, caller: str, **details: Any) -> OperationRecord:
        record = OperationRecord(
            sequence=self._next_sequence,
            operation=operation,
            caller=caller,
            details=details,
            ledger_name=self.name,
        )
        self._next_sequence += 1
        self.operation_log.append(record)
        if self.verbose:
            print(f"✓ APPLIED {record!r}")
        return record

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> ClaimLedger:
        """
        Create an independent copy of this ledger.

        Terms, whitelist, pending migrations and the operation log are copied;
        the value medium is shared, since it is external to the ledger.
        """
        with self._lock:
            cloned = ClaimLedger.__new__(ClaimLedger)
            cloned.name = self.name
            cloned.config = self.config
            cloned.verbose = self.verbose
            cloned._owner = self._owner
            cloned._unit_price = self._unit_price
            cloned._value_medium = self._value_medium
            cloned._sale_open = self._sale_open
            cloned.terms = dict(self.terms)
            cloned.whitelist = dict(self.whitelist)
            cloned.migrations = self.migrations.copy()
            cloned._total_percent = self._total_percent
            cloned._total_units = self._total_units
            cloned.operation_log = list(self.operation_log)
            cloned._next_sequence = self._next_sequence
            cloned._lock = threading.RLock()
            return cloned

    def __repr__(self) -> str:
        status = "open" if self._sale_open else "closed"
        return (
            f"ClaimLedger({self.name}, sale {status}, "
            f"{self._total_percent}/{self.config.percent_cap} pct, "
            f"{self._total_units}/{self.config.unit_cap} units)"
        )
