from .config import CookieOptions, Settings, StoreConfig, get_settings
from .errors import (
    BackendError,
    ConsistencyError,
    DecodingError,
    EncodingError,
    NotFoundError,
    SessionStoreError,
)
from .ids import generate_session_id
from .middleware import SessionMiddleware
from .repository import DynamoDBRepository, MemoryRepository, SessionRepository
from .sessions import Session, SessionStore
from .store import Found, Missing, Store

__all__ = [
    "BackendError",
    "ConsistencyError",
    "CookieOptions",
    "DecodingError",
    "DynamoDBRepository",
    "EncodingError",
    "Found",
    "MemoryRepository",
    "Missing",
    "NotFoundError",
    "Session",
    "SessionMiddleware",
    "SessionRepository",
    "SessionStore",
    "SessionStoreError",
    "Settings",
    "Store",
    "StoreConfig",
    "generate_session_id",
    "get_settings",
]
