"""
Main Orchestrator for Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Loading (session user -> gateway list -> store)
2. Mutations (form -> validate -> gateway -> store)
3. Export (store -> filtered view -> CSV artifact)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the gateway without passing validation
- The store only ever changes after the gateway confirms
- Every gateway call takes a version token first, so results that
  arrive late cannot overwrite newer confirmed state
- Results that belong to a previous user are dropped
- Every step is audited

Failures are classified and passed upward. The core never retries;
``refresh_with_retry`` is there for the view layer when the user asks.
"""

import datetime as dt
from enum import Enum
from typing import Any, Awaitable, Mapping, Optional, TypeVar
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from expense_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from expense_tracker.config import get_settings
from expense_tracker.export import export_expenses
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.expense import (
    Expense,
    ExpenseSummary,
    ExportArtifact,
    User,
)
from expense_tracker.queries import ExpenseListView
from expense_tracker.services.gateway import (
    AuthorizationError,
    ExpenseApiClient,
    ExpenseGatewayInterface,
    GatewayError,
    HttpExpenseGateway,
    HttpUserGateway,
    InMemoryExpenseGateway,
    InMemoryUserGateway,
    InvalidCredentialsError,
    NotFoundError,
    RejectedRequestError,
    TransportError,
    UserGatewayInterface,
)
from expense_tracker.services.session import (
    JsonFileSessionStorage,
    MemorySessionStorage,
    SessionStorageInterface,
)
from expense_tracker.session import NotAuthenticatedError, UserSession
from expense_tracker.store import ExpenseStore
from expense_tracker.validation import ExpenseValidationError, ExpenseValidator


T = TypeVar("T")


# =============================================================================
# FAILURE CLASSIFICATION
# =============================================================================

class FailureKind(str, Enum):
    """What went wrong, from the user's point of view."""
    VALIDATION = "validation"
    TRANSPORT = "transport"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    NOT_AUTHENTICATED = "not_authenticated"
    UNEXPECTED = "unexpected"


_FAILURE_MESSAGES = {
    FailureKind.VALIDATION: "Please correct the highlighted fields and try again.",
    FailureKind.TRANSPORT: "Could not reach the expense server. Check your connection and retry.",
    FailureKind.AUTHORIZATION: "The server rejected our credentials. Please sign in again.",
    FailureKind.NOT_FOUND: "That expense no longer exists. Refresh to see the latest list.",
    FailureKind.REJECTED: "The server refused the request.",
    FailureKind.NOT_AUTHENTICATED: "Please sign in first.",
    FailureKind.UNEXPECTED: "Something went wrong.",
}


def classify_failure(error: BaseException) -> FailureKind:
    """Map an exception to the kind of failure it represents."""
    if isinstance(error, ExpenseValidationError):
        return FailureKind.VALIDATION
    if isinstance(error, TransportError):
        return FailureKind.TRANSPORT
    if isinstance(error, AuthorizationError):
        return FailureKind.AUTHORIZATION
    if isinstance(error, NotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(error, RejectedRequestError):
        return FailureKind.REJECTED
    if isinstance(error, NotAuthenticatedError):
        return FailureKind.NOT_AUTHENTICATED
    return FailureKind.UNEXPECTED


def describe_failure(error: BaseException) -> str:
    """User-facing message; each failure kind reads differently."""
    kind = classify_failure(error)
    message = _FAILURE_MESSAGES[kind]
    if kind == FailureKind.REJECTED:
        return f"{message} {error}"
    if isinstance(error, InvalidCredentialsError):
        return "Invalid email or password."
    return message


# =============================================================================
# EXPENSE MANAGER
# =============================================================================

class ExpenseManager:
    """
    Orchestrates the expense flows for the signed-in user.

    Flow for a mutation:
    1. Validate → form errors stop here, the gateway is not contacted
    2. Token → take a version token from the store
    3. Gateway → create / update / delete
    4. Apply → write the confirmed result to the store (unless stale)
    5. Audit → record what happened

    Gateway failures are audited and re-raised unchanged.
    """

    def __init__(
        self,
        gateway: ExpenseGatewayInterface,
        session: UserSession,
        store: Optional[ExpenseStore] = None,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        today: Optional[dt.date] = None,
    ):
        self._gateway = gateway
        self._session = session
        self._store = store if store is not None else ExpenseStore()
        self._validator = validator or ExpenseValidator()
        self._audit = audit_logger or AuditLogger()
        self._view = ExpenseListView(self._store, today=today)
        # Bumped on every user change; results from an older epoch are dropped
        self._epoch = 0

        user = session.current_user
        current_id = user.id if user else None
        if self._store.owner_id != current_id:
            self._store.clear(owner_id=current_id)
        self._unsubscribe = session.subscribe(self._on_user_changed)

    @property
    def store(self) -> ExpenseStore:
        return self._store

    @property
    def view(self) -> ExpenseListView:
        return self._view

    @property
    def session(self) -> UserSession:
        return self._session

    @property
    def validator(self) -> ExpenseValidator:
        return self._validator

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    def close(self) -> None:
        self._unsubscribe()
        self._view.close()

    def _on_user_changed(self, user: Optional[User]) -> None:
        self._epoch += 1
        self._store.clear(owner_id=user.id if user else None)

    async def _call(
        self,
        operation: str,
        call: Awaitable[T],
        correlation_id: UUID,
        expense_id: Optional[int] = None,
    ) -> T:
        try:
            return await call
        except GatewayError as e:
            self._audit.log_gateway_error(
                operation=operation,
                failure_kind=classify_failure(e).value,
                error_message=str(e),
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
            raise

    def _discard(
        self,
        operation: str,
        expense_id: Optional[int],
        token: int,
        correlation_id: UUID,
    ) -> None:
        self._audit.log(AuditEventBuilder.stale_response_discarded(
            operation=operation,
            expense_id=expense_id,
            token=token,
            correlation_id=correlation_id,
        ))

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    async def load(self) -> bool:
        """
        Fetch all of the user's expenses into the store.

        Returns:
            True if the result was applied, False if the user changed
            while the request was in flight

        Raises:
            NotAuthenticatedError, TransportError, AuthorizationError
        """
        user = self._session.require_user()
        correlation_id = create_correlation_id()
        epoch = self._epoch
        token = self._store.issue_token()

        records = await self._call(
            "list_expenses",
            self._gateway.list_expenses(user.id),
            correlation_id,
        )

        if epoch != self._epoch:
            self._discard("list_expenses", None, token, correlation_id)
            return False

        self._store.replace_all(records, token)
        self._audit.log(AuditEventBuilder.expenses_loaded(
            user_id=user.id,
            count=len(records),
            correlation_id=correlation_id,
        ))
        return True

    async def refresh(self) -> bool:
        """Same as ``load``; named for the view's refresh button."""
        return await self.load()

    async def expenses_on(self, on: dt.date) -> list[Expense]:
        """The user's expenses for one day, straight from the backend."""
        user = self._session.require_user()
        return await self._call(
            "list_expenses_on",
            self._gateway.list_expenses_on(user.id, on),
            create_correlation_id(),
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _build_draft(
        self,
        data: Mapping[str, Any],
        user: User,
        correlation_id: UUID,
        today: Optional[dt.date],
    ):
        try:
            draft, _ = self._validator.build_draft(data, user.id, today)
        except ExpenseValidationError as e:
            self._audit.log(AuditEventBuilder.validation_failed(
                issues=[issue.model_dump() for issue in e.result.issues],
                correlation_id=correlation_id,
            ))
            raise
        return draft

    async def add_expense(
        self,
        data: Mapping[str, Any],
        today: Optional[dt.date] = None,
    ) -> Expense:
        """
        Validate and create an expense.

        The confirmed record is inserted as soon as its id is known.

        Raises:
            ExpenseValidationError: If the form is invalid (no gateway call)
            GatewayError: If the backend call fails (store unchanged)
        """
        user = self._session.require_user()
        correlation_id = create_correlation_id()
        draft = self._build_draft(data, user, correlation_id, today)

        epoch = self._epoch
        token = self._store.issue_token()
        created = await self._call(
            "create_expense",
            self._gateway.create_expense(draft),
            correlation_id,
        )

        if epoch != self._epoch or not self._store.insert(created, token):
            self._discard("create_expense", created.id, token, correlation_id)
            return created

        self._audit.log(AuditEventBuilder.expense_created(
            expense_id=created.id,
            amount=str(created.amount),
            category=created.category,
            correlation_id=correlation_id,
        ))
        return created

    async def update_expense(
        self,
        expense_id: int,
        data: Mapping[str, Any],
        today: Optional[dt.date] = None,
    ) -> Expense:
        """
        Validate and replace an existing expense.

        A result older than the record's current version is discarded.
        The update is audited only when the store changed.

        Raises:
            ExpenseValidationError: If the form is invalid (no gateway call)
            NotFoundError: If the id is stale (store unchanged)
        """
        user = self._session.require_user()
        correlation_id = create_correlation_id()
        draft = self._build_draft(data, user, correlation_id, today)

        epoch = self._epoch
        token = self._store.issue_token()
        updated = await self._call(
            "update_expense",
            self._gateway.update_expense(expense_id, draft),
            correlation_id,
            expense_id=expense_id,
        )

        if epoch != self._epoch or self._store.version_of(expense_id) > token:
            self._discard("update_expense", expense_id, token, correlation_id)
            return updated

        if not self._store.replace_by_id(expense_id, updated, token):
            # Not loaded yet; the store keeps it for the listing in flight
            return updated

        self._audit.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            amount=str(updated.amount),
            category=updated.category,
            correlation_id=correlation_id,
        ))
        return updated

    async def delete_expense(self, expense_id: int) -> bool:
        """
        Delete an expense. The store changes only after the backend confirms.

        Returns:
            True if the record was removed from the store

        Raises:
            NotFoundError: If the id is stale (store unchanged)
        """
        self._session.require_user()
        correlation_id = create_correlation_id()

        epoch = self._epoch
        token = self._store.issue_token()
        await self._call(
            "delete_expense",
            self._gateway.delete_expense(expense_id),
            correlation_id,
            expense_id=expense_id,
        )

        if epoch != self._epoch or self._store.version_of(expense_id) > token:
            self._discard("delete_expense", expense_id, token, correlation_id)
            return False

        removed = self._store.remove_by_id(expense_id, token)
        self._audit.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))
        return removed

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def rows(self) -> list[Expense]:
        return self._view.rows()

    def summary(self) -> ExpenseSummary:
        return self._view.summary()

    def export(
        self,
        now: Optional[dt.datetime] = None,
    ) -> tuple[Optional[ExportArtifact], str]:
        """
        Export the current filtered and sorted view as CSV.

        Never contacts the gateway.

        Returns:
            (artifact, message) - artifact is None when nothing matches
        """
        artifact = export_expenses(self._view.rows(), now=now)
        if artifact is None:
            self._audit.log(AuditEventBuilder.export_empty())
            return None, "No expenses to export."

        self._audit.log(AuditEventBuilder.export_generated(
            filename=artifact.filename,
            row_count=artifact.row_count,
        ))
        return artifact, f"Exported {artifact.row_count} expenses to {artifact.filename}."


async def refresh_with_retry(
    manager: ExpenseManager,
    attempts: Optional[int] = None,
    wait_seconds: float = 0.5,
) -> bool:
    """
    Reload with retries on transport failures only.

    Any other failure is raised immediately; after the last attempt the
    final TransportError is re-raised.
    """
    attempts = attempts or get_settings().app.refresh_retry_attempts
    wait = wait_exponential(multiplier=wait_seconds, max=10) if wait_seconds > 0 else wait_none()

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait,
        retry=retry_if_exception_type(TransportError),
        reraise=True,
    ):
        with attempt:
            return await manager.load()
    return False


def create_gateways(
    use_remote: bool = True,
) -> tuple[UserGatewayInterface, ExpenseGatewayInterface]:
    """
    Create the backend gateways.

    Gateways carry no signed-in user, so one pair can serve every
    session of the process.

    Args:
        use_remote: Whether to talk to the REST backend.
                    Set to False to run against in-memory gateways
                    (offline demo, testing).

    Returns:
        (user_gateway, expense_gateway)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level, settings.app.log_json)

    if use_remote:
        client = ExpenseApiClient(settings.gateway)
        return HttpUserGateway(client), HttpExpenseGateway(client)
    return InMemoryUserGateway(), InMemoryExpenseGateway()


def create_user_components(
    user_gateway: UserGatewayInterface,
    expense_gateway: ExpenseGatewayInterface,
    storage: Optional[SessionStorageInterface] = None,
) -> tuple[UserSession, ExpenseManager]:
    """
    Create the per-user pieces: session, store and manager.

    Each browser session (or CLI run) needs its own pair. The session
    is restored from ``storage`` before the manager is built.
    """
    settings = get_settings()
    audit_logger = AuditLogger()

    session = UserSession(
        user_gateway,
        storage if storage is not None else MemorySessionStorage(),
        audit_logger=audit_logger,
    )
    session.restore()

    manager = ExpenseManager(
        gateway=expense_gateway,
        session=session,
        validator=ExpenseValidator(settings=settings.app),
        audit_logger=audit_logger,
    )
    return session, manager


def create_app_components(
    use_remote: bool = True,
) -> tuple[UserSession, ExpenseManager]:
    """
    Factory for a single-user process.

    The remote wiring remembers the signed-in user in the JSON session
    file; the offline wiring keeps it in memory.

    Returns:
        (session, expense_manager)
    """
    user_gateway, expense_gateway = create_gateways(use_remote)
    if use_remote:
        storage = JsonFileSessionStorage(settings=get_settings().session)
    else:
        storage = MemorySessionStorage()
    return create_user_components(user_gateway, expense_gateway, storage)
