"""
Tests for the REST gateway, against a stub requests.Session.
"""

import json
import pytest
from datetime import date
from decimal import Decimal

import requests

from expense_tracker.config import GatewaySettings
from expense_tracker.models.expense import ExpenseDraft
from expense_tracker.services.gateway import (
    AuthorizationError,
    ExpenseApiClient,
    HttpExpenseGateway,
    HttpUserGateway,
    InvalidCredentialsError,
    MalformedResponseError,
    NotFoundError,
    RejectedRequestError,
    TransportError,
)


def _response(status: int, body=None, raw: bytes = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    response.headers["Content-Type"] = "application/json"
    return response


class StubSession(requests.Session):
    """Records calls and returns queued responses (or raises queued errors)."""

    def __init__(self, *outcomes):
        super().__init__()
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(*outcomes):
    settings = GatewaySettings(base_url="http://api.test/", username="u", password="p")
    session = StubSession(*outcomes)
    return ExpenseApiClient(settings, session=session), session


EXPENSE_JSON = {
    "id": 11,
    "userId": 2,
    "amount": 100.0,
    "category": "Food",
    "description": "Lunch",
    "date": "2024-01-05",
}


class TestExpenseApiClient:
    """Tests for the low-level client."""

    def test_base_url_and_credential(self):
        """Test the trailing slash is stripped and basic auth is attached."""
        client, session = _client(_response(200, []))
        client.request_sync("GET", "/api/expenses/user/2")
        assert session.calls[0]["url"] == "http://api.test/api/expenses/user/2"
        assert session.auth.username == "u"
        assert session.calls[0]["timeout"] == 10

    @pytest.mark.parametrize("status,error", [
        (401, AuthorizationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (400, RejectedRequestError),
        (409, RejectedRequestError),
        (500, TransportError),
        (503, TransportError),
    ])
    def test_status_mapping(self, status, error):
        """Test HTTP failures map to the error taxonomy."""
        client, _ = _client(_response(status, {"message": "nope"}))
        with pytest.raises(error) as exc_info:
            client.request_sync("GET", "/x")
        assert exc_info.value.status_code == status
        assert "nope" in str(exc_info.value)

    def test_connection_error_is_transport(self):
        """Test network failures are retryable transport errors."""
        client, _ = _client(requests.ConnectionError("refused"))
        with pytest.raises(TransportError):
            client.request_sync("GET", "/x")

    def test_timeout_is_transport(self):
        """Test timeouts are transport errors."""
        client, _ = _client(requests.Timeout("slow"))
        with pytest.raises(TransportError):
            client.request_sync("GET", "/x")

    def test_non_json_body_is_malformed(self):
        """Test a garbage body is a malformed response."""
        client, _ = _client(_response(200, raw=b"<html>oops</html>"))
        with pytest.raises(MalformedResponseError):
            client.request_sync("GET", "/x")

    def test_empty_body(self):
        """Test 204 / empty bodies decode to None."""
        client, _ = _client(_response(204))
        assert client.request_sync("DELETE", "/x") is None


class TestHttpExpenseGateway:
    """Tests for expense endpoints."""

    @pytest.mark.asyncio
    async def test_list_expenses(self):
        """Test listing parses records."""
        client, session = _client(_response(200, [EXPENSE_JSON]))
        expenses = await HttpExpenseGateway(client).list_expenses(2)
        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["url"].endswith("/api/expenses/user/2")
        assert expenses[0].id == 11
        assert expenses[0].amount == Decimal("100.0")

    @pytest.mark.asyncio
    async def test_list_expenses_on_date(self):
        """Test the per-day listing path."""
        client, session = _client(_response(200, []))
        await HttpExpenseGateway(client).list_expenses_on(2, date(2024, 1, 5))
        assert session.calls[0]["url"].endswith("/api/expenses/user/2/date/2024-01-05")

    @pytest.mark.asyncio
    async def test_create_expense_sends_payload_without_id(self):
        """Test create posts the wire shape and returns the assigned id."""
        client, session = _client(_response(201, EXPENSE_JSON))
        draft = ExpenseDraft(
            amount=Decimal("100"), category="Food", description="Lunch",
            date=date(2024, 1, 5), user_id=2,
        )
        created = await HttpExpenseGateway(client).create_expense(draft)
        sent = session.calls[0]["json"]
        assert session.calls[0]["method"] == "POST"
        assert "id" not in sent
        assert sent["userId"] == 2
        assert sent["date"] == "2024-01-05"
        assert created.id == 11

    @pytest.mark.asyncio
    async def test_update_expense(self):
        """Test update puts to the record's URL."""
        client, session = _client(_response(200, EXPENSE_JSON))
        draft = ExpenseDraft(amount=Decimal("1"), category="Food", date=date(2024, 1, 5), user_id=2)
        await HttpExpenseGateway(client).update_expense(11, draft)
        assert session.calls[0]["method"] == "PUT"
        assert session.calls[0]["url"].endswith("/api/expenses/11")

    @pytest.mark.asyncio
    async def test_delete_stale_id(self):
        """Test deleting a missing id raises NotFoundError."""
        client, _ = _client(_response(404))
        with pytest.raises(NotFoundError):
            await HttpExpenseGateway(client).delete_expense(99)

    @pytest.mark.asyncio
    async def test_non_finite_amount_is_malformed(self):
        """Test a bad amount in a response is surfaced, never zeroed."""
        bad = dict(EXPENSE_JSON, amount="NaN")
        client, _ = _client(_response(200, [bad]))
        with pytest.raises(MalformedResponseError):
            await HttpExpenseGateway(client).list_expenses(2)


class TestHttpUserGateway:
    """Tests for user endpoints."""

    @pytest.mark.asyncio
    async def test_authenticate(self):
        """Test login posts credentials and parses the user."""
        client, session = _client(_response(200, {"id": 2, "name": "Asha", "email": "a@x.io"}))
        user = await HttpUserGateway(client).authenticate("a@x.io", "secret")
        assert session.calls[0]["url"].endswith("/api/users/login")
        assert session.calls[0]["json"] == {"email": "a@x.io", "password": "secret"}
        assert user.id == 2

    @pytest.mark.parametrize("status", [401, 404])
    @pytest.mark.asyncio
    async def test_authenticate_rejected(self, status):
        """Test wrong password and unknown email look the same."""
        client, _ = _client(_response(status))
        with pytest.raises(InvalidCredentialsError):
            await HttpUserGateway(client).authenticate("a@x.io", "bad")

    @pytest.mark.asyncio
    async def test_register_user(self):
        """Test registration payload includes createdAt."""
        client, session = _client(_response(201, {"id": 5, "name": "Ravi", "email": "r@x.io"}))
        user = await HttpUserGateway(client).register_user("Ravi", "r@x.io", "pw")
        sent = session.calls[0]["json"]
        assert set(sent) == {"name", "email", "password", "createdAt"}
        assert user.id == 5

    @pytest.mark.asyncio
    async def test_get_user(self):
        """Test fetching a user by id."""
        client, session = _client(_response(200, {"id": 5, "email": "r@x.io"}))
        user = await HttpUserGateway(client).get_user(5)
        assert session.calls[0]["url"].endswith("/api/users/5")
        assert user.email == "r@x.io"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
