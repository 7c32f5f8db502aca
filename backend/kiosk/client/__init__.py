"""Python client for the kiosk REST API."""
from .api import ApiError, AuthenticationRequired, KioskClient, GENERIC_ERROR
from .session_store import ClientSession, JsonFileSessionStore, MemorySessionStore, SessionStore

__all__ = [
    "ApiError",
    "AuthenticationRequired",
    "KioskClient",
    "GENERIC_ERROR",
    "ClientSession",
    "JsonFileSessionStore",
    "MemorySessionStore",
    "SessionStore",
]
