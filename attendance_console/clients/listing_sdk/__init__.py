from attendance_console.clients.listing_sdk.auth_store import AuthStore
from attendance_console.clients.listing_sdk.collection_client import CollectionClient
from attendance_console.clients.listing_sdk.errors import (
    APIError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    ServerError,
    TransportError,
    ValidationError,
)
from attendance_console.clients.listing_sdk.http_client import HttpClient

__all__ = [
    "APIError",
    "AuthError",
    "AuthStore",
    "CollectionClient",
    "ConflictError",
    "HttpClient",
    "NotFoundError",
    "PermissionError",
    "ServerError",
    "TransportError",
    "ValidationError",
]
