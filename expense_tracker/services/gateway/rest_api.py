"""
REST Gateway Implementation

Talks to the expense backend over HTTP:

    GET    /api/expenses/user/{userId}
    GET    /api/expenses/user/{userId}/date/{date}
    POST   /api/expenses
    PUT    /api/expenses/{id}
    DELETE /api/expenses/{id}
    POST   /api/users
    POST   /api/users/login
    GET    /api/users/{id}

A static HTTP Basic credential (from settings) is attached to every call.

TRADEOFFS:
- requests is blocking, so each call runs in a worker thread; the event
  loop (and therefore the store) is never blocked or touched off-loop
- No retries here: the caller decides whether a transport failure is
  worth retrying
"""

import asyncio
from datetime import date, datetime
from typing import Any, Optional

import requests
import structlog
from pydantic import TypeAdapter, ValidationError
from requests.auth import HTTPBasicAuth

from expense_tracker.config import GatewaySettings, get_settings
from expense_tracker.models.expense import Expense, ExpenseDraft, User
from expense_tracker.services.gateway.interface import (
    AuthorizationError,
    ExpenseGatewayInterface,
    InvalidCredentialsError,
    MalformedResponseError,
    NotFoundError,
    RejectedRequestError,
    TransportError,
    UserGatewayInterface,
)


logger = structlog.get_logger(__name__)

_EXPENSE_LIST = TypeAdapter(list[Expense])


class ExpenseApiClient:
    """
    Low-level HTTP client wrapper.

    Handles the base URL, the static credential, timeouts, and the
    mapping from HTTP failures to gateway errors.
    """

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().gateway
        self._session = session or requests.Session()
        self._session.auth = HTTPBasicAuth(
            self._settings.username,
            self._settings.password,
        )
        self._session.headers.update({"Accept": "application/json"})

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def request_sync(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one request and decode the JSON body.

        Returns None for empty bodies (e.g. 204 No Content).
        """
        url = f"{self._settings.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                json=payload,
                timeout=self._settings.timeout_seconds,
            )
        except requests.Timeout as e:
            logger.warning("gateway_timeout", method=method, path=path)
            raise TransportError(f"Request timed out: {method} {path}") from e
        except requests.RequestException as e:
            logger.warning("gateway_unreachable", method=method, path=path, error=str(e))
            raise TransportError(f"Backend unreachable: {e}") from e

        self._raise_for_status(method, path, response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Backend returned non-JSON body for {method} {path}",
                status_code=response.status_code,
            ) from e

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Async wrapper: run the blocking request in a worker thread."""
        return await asyncio.to_thread(self.request_sync, method, path, payload)

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _raise_for_status(method: str, path: str, response: requests.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = _error_detail(response)
        message = f"{method} {path} failed with {status}: {detail}"
        logger.warning("gateway_http_error", method=method, path=path, status=status)

        if status in (401, 403):
            raise AuthorizationError(message, status_code=status)
        if status == 404:
            raise NotFoundError(message, status_code=status)
        if status >= 500:
            raise TransportError(message, status_code=status)
        raise RejectedRequestError(message, status_code=status)


def _error_detail(response: requests.Response) -> str:
    """Best-effort message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "no detail"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


def _parse_expense(data: Any) -> Expense:
    try:
        return Expense.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Backend returned an invalid expense: {e}") from e


def _parse_expenses(data: Any) -> list[Expense]:
    try:
        return _EXPENSE_LIST.validate_python(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Backend returned invalid expenses: {e}") from e


def _parse_user(data: Any) -> User:
    try:
        return User.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Backend returned an invalid user: {e}") from e


class HttpExpenseGateway(ExpenseGatewayInterface):
    """
    Expense operations over the REST API.
    """

    def __init__(self, client: ExpenseApiClient):
        self._client = client

    async def list_expenses(self, user_id: int) -> list[Expense]:
        data = await self._client.request("GET", f"/api/expenses/user/{user_id}")
        return _parse_expenses(data or [])

    async def list_expenses_on(self, user_id: int, on: date) -> list[Expense]:
        data = await self._client.request(
            "GET", f"/api/expenses/user/{user_id}/date/{on.isoformat()}"
        )
        return _parse_expenses(data or [])

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        data = await self._client.request("POST", "/api/expenses", draft.to_payload())
        return _parse_expense(data)

    async def update_expense(self, expense_id: int, draft: ExpenseDraft) -> Expense:
        data = await self._client.request(
            "PUT", f"/api/expenses/{expense_id}", draft.to_payload()
        )
        return _parse_expense(data)

    async def delete_expense(self, expense_id: int) -> bool:
        await self._client.request("DELETE", f"/api/expenses/{expense_id}")
        return True


class HttpUserGateway(UserGatewayInterface):
    """
    User operations over the REST API.
    """

    def __init__(self, client: ExpenseApiClient):
        self._client = client

    async def authenticate(self, email: str, password: str) -> User:
        try:
            data = await self._client.request(
                "POST",
                "/api/users/login",
                {"email": email, "password": password},
            )
        except (AuthorizationError, NotFoundError) as e:
            # Unknown email and wrong password look the same to the caller
            raise InvalidCredentialsError(
                "Invalid email or password",
                status_code=e.status_code,
            ) from e
        return _parse_user(data)

    async def register_user(self, name: str, email: str, password: str) -> User:
        data = await self._client.request(
            "POST",
            "/api/users",
            {
                "name": name,
                "email": email,
                "password": password,
                "createdAt": datetime.utcnow().isoformat(),
            },
        )
        return _parse_user(data)

    async def get_user(self, user_id: int) -> User:
        data = await self._client.request("GET", f"/api/users/{user_id}")
        if data is None:
            raise NotFoundError(f"User {user_id} not found")
        return _parse_user(data)

