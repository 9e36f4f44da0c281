"""
User Session Context

DESIGN DECISION: The authenticated user is held by an explicit session
object that is passed to whatever needs it. There is no module-level
"current user".

Lifecycle:
    session = UserSession(user_gateway, storage)
    session.restore()                  # startup: read the persisted slot
    await session.login(email, pw)     # verify credentials, persist {id, name, email}
    session.logout()                   # clear the slot

Listeners registered with ``subscribe`` are told about every change of
user (including to None) so the store can be reset on a user switch.
"""

from typing import Callable, Optional

import structlog

from expense_tracker.audit import AuditLogger
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.expense import User
from expense_tracker.services.gateway import (
    InvalidCredentialsError,
    UserGatewayInterface,
)
from expense_tracker.services.session import SessionStorageInterface


logger = structlog.get_logger(__name__)

SessionListener = Callable[[Optional[User]], None]


class NotAuthenticatedError(Exception):
    """An operation needs a signed-in user and there is none."""
    pass


class UserSession:
    """
    The signed-in user plus the persisted session slot behind it.
    """

    def __init__(
        self,
        user_gateway: UserGatewayInterface,
        storage: SessionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._gateway = user_gateway
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._user: Optional[User] = None
        self._listeners: list[SessionListener] = []

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def require_user(self) -> User:
        """
        The signed-in user.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        if self._user is None:
            raise NotAuthenticatedError("Please sign in first")
        return self._user

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def restore(self) -> Optional[User]:
        """
        Load the persisted user, if any.

        A corrupted slot is cleared by the storage and reads as None.
        """
        user = self._storage.load()
        if user is not None:
            self._audit.log(AuditEventBuilder.session_restored(user.id, user.email))
        self._set_user(user)
        return user

    async def login(self, email: str, password: str) -> User:
        """
        Verify credentials with the backend and start a session.

        Raises:
            InvalidCredentialsError: If email or password is wrong
            TransportError: If the backend is unreachable
        """
        email = email.strip()
        try:
            user = await self._gateway.authenticate(email, password)
        except InvalidCredentialsError as e:
            self._audit.log(AuditEventBuilder.login_failed(email, str(e)))
            raise

        self._storage.save(user)
        self._audit.log(AuditEventBuilder.session_started(user.id, user.email))
        self._set_user(user)
        return user

    async def register(self, name: str, email: str, password: str) -> User:
        """
        Create an account. Does not sign the new user in.

        Raises:
            RejectedRequestError: If the backend refuses (e.g. email taken)
        """
        user = await self._gateway.register_user(name.strip(), email.strip(), password)
        self._audit.log(AuditEventBuilder.user_registered(user.id, user.email))
        return user

    def logout(self) -> None:
        """End the session and clear the persisted slot."""
        previous = self._user
        self._storage.clear()
        if previous is not None:
            self._audit.log(AuditEventBuilder.session_ended(previous.id))
        self._set_user(None)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a user-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_user(self, user: Optional[User]) -> None:
        previous_id = self._user.id if self._user else None
        new_id = user.id if user else None
        self._user = user
        if previous_id != new_id:
            logger.info("session_user_changed", previous_user_id=previous_id, user_id=new_id)
            for listener in list(self._listeners):
                listener(user)
