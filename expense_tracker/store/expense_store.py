"""
Expense Store

Holds the authoritative in-memory collection of the current user's
expenses. Only confirmed gateway results are written here; filtering,
sorting, aggregation and export read from it and never write.

DESIGN DECISION: Every mutation can carry a version token.

Tokens come from ``issue_token()`` and increase monotonically. The
caller takes a token BEFORE starting a gateway call and hands it back
together with the confirmed result. The store remembers, per record id,
the highest token it has applied (even after the record is deleted) and
refuses any result carrying a lower one. A slow response can therefore
never overwrite state that a later call has already confirmed.

Mutations without a token always apply.

A tokened update for an id the store does not hold yet (a load is
still in flight) changes nothing visible, but its version and record
are kept aside. When the older listing lands, ``replace_all`` uses the
kept record instead of the listed one.

Every effective mutation bumps ``revision`` and notifies subscribers
with a ``StoreChange``. Discarded or no-op mutations notify nobody.
"""

import itertools
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from expense_tracker.models.expense import Expense


logger = structlog.get_logger(__name__)


class ChangeKind(str, Enum):
    """What kind of mutation produced a change notification."""
    REPLACED_ALL = "replaced_all"
    INSERTED = "inserted"
    UPDATED = "updated"
    REMOVED = "removed"
    CLEARED = "cleared"


class StoreChange(BaseModel):
    """A single change notification."""
    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    revision: int
    expense_id: Optional[int] = None
    owner_id: Optional[int] = None


StoreListener = Callable[[StoreChange], None]


class ExpenseStore:
    """
    In-memory collection of one user's expenses, keyed by id.

    Iteration order is insertion order: records loaded by
    ``replace_all`` keep the gateway's order, new records go last,
    replaced records keep their position.
    """

    def __init__(self, owner_id: Optional[int] = None):
        self._records: dict[int, Expense] = {}
        self._versions: dict[int, int] = {}
        # Confirmed updates for ids not (yet) in _records
        self._pending: dict[int, Expense] = {}
        self._tokens = itertools.count(1)
        self._revision = 0
        self._owner_id = owner_id
        self._listeners: list[StoreListener] = []

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def owner_id(self) -> Optional[int]:
        """The user whose expenses this store holds."""
        return self._owner_id

    @property
    def revision(self) -> int:
        """Increases by one on every effective mutation."""
        return self._revision

    def all(self) -> tuple[Expense, ...]:
        """Snapshot of every record. Records are immutable."""
        return tuple(self._records.values())

    def get(self, expense_id: int) -> Optional[Expense]:
        return self._records.get(expense_id)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, expense_id: object) -> bool:
        return expense_id in self._records

    def __iter__(self) -> Iterator[Expense]:
        return iter(self.all())

    # -------------------------------------------------------------------------
    # Versioning
    # -------------------------------------------------------------------------

    def issue_token(self) -> int:
        """Take the next version token. Call before the gateway request."""
        return next(self._tokens)

    def version_of(self, expense_id: int) -> int:
        """Highest token applied to ``expense_id`` (0 if none)."""
        return self._versions.get(expense_id, 0)

    def _is_stale(self, operation: str, expense_id: int, token: Optional[int]) -> bool:
        if token is None:
            return False
        current = self._versions.get(expense_id, 0)
        if token < current:
            logger.info(
                "stale_result_discarded",
                operation=operation,
                expense_id=expense_id,
                token=token,
                current_version=current,
            )
            return True
        return False

    def _record_version(self, expense_id: int, token: Optional[int]) -> None:
        if token is not None:
            self._versions[expense_id] = max(token, self._versions.get(expense_id, 0))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def replace_all(
        self,
        records: Iterable[Expense],
        token: Optional[int] = None,
    ) -> bool:
        """
        Replace the whole collection with a freshly listed one.

        Without a token this is a hard reset: versions are forgotten
        and the listing becomes the new collection.

        With a token, any record whose version is newer than the token
        was confirmed after the listing was requested, so it wins:
        newer updates and creates are kept, newer deletions stay deleted.
        Versions older than the listing for ids that are gone are dropped.

        Returns True (a full replace always counts as a change).
        """
        incoming = list(records)

        if token is None:
            self._records = {record.id: record for record in incoming}
            self._versions = {}
        else:
            confirmed = {**self._pending, **self._records}
            merged: dict[int, Expense] = {}
            for record in incoming:
                if self._versions.get(record.id, 0) > token:
                    newer = confirmed.get(record.id)
                    if newer is not None:
                        merged[record.id] = newer
                    continue
                merged[record.id] = record
                self._record_version(record.id, token)

            for expense_id, record in confirmed.items():
                if expense_id not in merged and self._versions.get(expense_id, 0) > token:
                    merged[expense_id] = record
            self._records = merged
            self._versions = {
                expense_id: version
                for expense_id, version in self._versions.items()
                if version >= token or expense_id in merged
            }
        self._pending = {}

        self._notify(ChangeKind.REPLACED_ALL)
        return True

    def insert(self, record: Expense, token: Optional[int] = None) -> bool:
        """
        Add a newly created record.

        A record whose id is already present replaces it in place.
        Returns False if the result was stale and discarded.
        """
        if self._is_stale("insert", record.id, token):
            return False

        existed = record.id in self._records
        self._records[record.id] = record
        self._pending.pop(record.id, None)
        self._record_version(record.id, token)
        self._notify(ChangeKind.UPDATED if existed else ChangeKind.INSERTED, record.id)
        return True

    def replace_by_id(
        self,
        expense_id: int,
        record: Expense,
        token: Optional[int] = None,
    ) -> bool:
        """
        Replace the record with ``expense_id``.

        A no-op when the id is absent, except that a tokened record is
        kept aside for the next ``replace_all``. Returns True only when
        the store changed.
        """
        if record.id != expense_id:
            raise ValueError(
                f"Record id {record.id} does not match target id {expense_id}"
            )
        if self._is_stale("replace", expense_id, token):
            return False
        if expense_id not in self._records:
            if token is not None:
                self._record_version(expense_id, token)
                self._pending[expense_id] = record
            return False

        self._records[expense_id] = record
        self._record_version(expense_id, token)
        self._notify(ChangeKind.UPDATED, expense_id)
        return True

    def remove_by_id(self, expense_id: int, token: Optional[int] = None) -> bool:
        """
        Remove the record with ``expense_id``.

        A no-op when the id is absent. The token is remembered even
        then, so an older response cannot bring the record back.
        """
        if self._is_stale("remove", expense_id, token):
            return False

        self._record_version(expense_id, token)
        self._pending.pop(expense_id, None)
        if self._records.pop(expense_id, None) is None:
            return False

        self._notify(ChangeKind.REMOVED, expense_id)
        return True

    def clear(self, owner_id: Optional[int] = None) -> None:
        """Drop everything (records and versions) and switch owner."""
        self._records = {}
        self._versions = {}
        self._pending = {}
        self._owner_id = owner_id
        self._notify(ChangeKind.CLEARED)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ChangeKind, expense_id: Optional[int] = None) -> None:
        self._revision += 1
        change = StoreChange(
            kind=kind,
            revision=self._revision,
            expense_id=expense_id,
            owner_id=self._owner_id,
        )
        for listener in list(self._listeners):
            listener(change)
