"""
Gateway Services Package

Provides the abstract backend interfaces and their implementations:
REST over HTTP for production, in-memory for tests and offline use.
"""

from expense_tracker.services.gateway.interface import (
    AuthorizationError,
    ExpenseGatewayInterface,
    GatewayError,
    InvalidCredentialsError,
    MalformedResponseError,
    NotFoundError,
    RejectedRequestError,
    TransportError,
    UserGatewayInterface,
)
from expense_tracker.services.gateway.memory import (
    InMemoryExpenseGateway,
    InMemoryUserGateway,
)
from expense_tracker.services.gateway.rest_api import (
    ExpenseApiClient,
    HttpExpenseGateway,
    HttpUserGateway,
)

__all__ = [
    # Interfaces
    "ExpenseGatewayInterface",
    "UserGatewayInterface",
    # Exceptions
    "AuthorizationError",
    "GatewayError",
    "InvalidCredentialsError",
    "MalformedResponseError",
    "NotFoundError",
    "RejectedRequestError",
    "TransportError",
    # REST implementation
    "ExpenseApiClient",
    "HttpExpenseGateway",
    "HttpUserGateway",
    # In-memory implementation
    "InMemoryExpenseGateway",
    "InMemoryUserGateway",
]
