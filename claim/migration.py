"""
migration.py - Two-phase identity migration state machine

A participant moves their allocation to a new identity in two steps:

    1. push: the current holder names the destination identity
    2. pull: the destination identity claims the allocation

Each source identity carries its own small state machine:

    NO_REQUEST -> PUSHED        (push)
    PUSHED     -> PUSHED        (re-push replaces the destination)
    PUSHED     -> NO_REQUEST    (a matching pull consumes the request)

MigrationBook only tracks requests. Moving the Term itself is the ledger's
job; keeping the two apart lets the push/pull contract be tested on its own.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from .core import NoPushRecorded


class MigrationState(Enum):
    """Lifecycle state of a source identity's migration request."""
    NO_REQUEST = "no_request"
    PUSHED = "pushed"


MIGRATION_TRANSITIONS: Dict[MigrationState, FrozenSet[MigrationState]] = {
    MigrationState.NO_REQUEST: frozenset({MigrationState.PUSHED}),
    MigrationState.PUSHED: frozenset({MigrationState.PUSHED, MigrationState.NO_REQUEST}),
}


@dataclass(frozen=True, slots=True)
class PendingMigration:
    """A recorded push: source intends to hand its allocation to destination."""
    source: str
    destination: str

    def __repr__(self) -> str:
        return f"PendingMigration({self.source}→{self.destination})"


class MigrationBook:
    """
    Pending migration requests, at most one per source identity.

    Example:
        book = MigrationBook()
        book.push("alice", "alice_new")
        book.require_claim("alice", "alice_new")   # ok
        book.clear("alice")
    """

    def __init__(self) -> None:
        self._pending: Dict[str, PendingMigration] = {}

    def state_of(self, source: str) -> MigrationState:
        if source in self._pending:
            return MigrationState.PUSHED
        return MigrationState.NO_REQUEST

    def destination_of(self, source: str) -> Optional[str]:
        """Return the pushed destination for source, or None if nothing is pending."""
        pending = self._pending.get(source)
        return pending.destination if pending else None

    def pending(self) -> Dict[str, PendingMigration]:
        """Return a copy of all pending requests keyed by source."""
        return dict(self._pending)

    def push(self, source: str, destination: str) -> PendingMigration:
        """
        Record (or replace) source's migration request.

        The destination is not validated here; validation happens on pull.
        """
        self._transition(source, MigrationState.PUSHED)
        record = PendingMigration(source=source, destination=destination)
        self._pending[source] = record
        return record

    def require_claim(self, source: str, claimant: str) -> PendingMigration:
        """
        Check that claimant is the pushed destination of source.

        Raises:
            NoPushRecorded: If source has no pending request, or it names
                another destination.
        """
        pending = self._pending.get(source)
        if pending is None:
            raise NoPushRecorded(f"No migration pushed by {source}")
        if pending.destination != claimant:
            raise NoPushRecorded(f"Migration from {source} was not pushed to {claimant}")
        return pending

    def clear(self, source: str) -> None:
        """Consume source's request after a successful pull."""
        self._transition(source, MigrationState.NO_REQUEST)
        del self._pending[source]

    def copy(self) -> MigrationBook:
        cloned = MigrationBook()
        cloned._pending = dict(self._pending)
        return cloned

    def _transition(self, source: str, new_state: MigrationState) -> None:
        current = self.state_of(source)
        if new_state not in MIGRATION_TRANSITIONS[current]:
            raise ValueError(
                f"Invalid migration transition for {source}: "
                f"{current.value} -> {new_state.value}"
            )

    def __len__(self) -> int:
        return len(self._pending)
