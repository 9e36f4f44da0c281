"""Services package."""

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
    MalformedResponseError,
    NotFoundError,
    RejectedRequestError,
    TransportError,
    UserGatewayInterface,
)
from expense_tracker.services.session import (
    JsonFileSessionStorage,
    MemorySessionStorage,
    SessionStorageError,
    SessionStorageInterface,
)

__all__ = [
    # Gateway services
    "AuthorizationError",
    "ExpenseApiClient",
    "ExpenseGatewayInterface",
    "GatewayError",
    "HttpExpenseGateway",
    "HttpUserGateway",
    "InMemoryExpenseGateway",
    "InMemoryUserGateway",
    "InvalidCredentialsError",
    "MalformedResponseError",
    "NotFoundError",
    "RejectedRequestError",
    "TransportError",
    "UserGatewayInterface",
    # Session storage
    "JsonFileSessionStorage",
    "MemorySessionStorage",
    "SessionStorageError",
    "SessionStorageInterface",
]
