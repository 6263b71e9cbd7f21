"""Exceptions raised by the session store."""

from __future__ import annotations

from botocore.exceptions import ClientError


class SessionStoreError(Exception):
    """Base class for every error raised by dynastore."""


class NotFoundError(SessionStoreError):
    """No record exists for the session ID (never written, deleted or expired)."""

    def __init__(self, session_id: str) -> None:
        super().__init__("state missing or deleted from store")
        self.session_id = session_id


class EncodingError(SessionStoreError):
    """A session value cannot be represented as a DynamoDB attribute."""


class DecodingError(SessionStoreError):
    """A stored record is malformed or type-inconsistent."""


class BackendError(SessionStoreError):
    """DynamoDB call failed (network, throttling, permissions, timeout...).

    The original exception is kept as ``__cause__`` and ``original``.
    """

    def __init__(self, operation: str, original: BaseException) -> None:
        super().__init__(f"{operation} failed: {original}")
        self.operation = operation
        self.original = original

    @property
    def code(self) -> str | None:
        """AWS error code, e.g. ``ProvisionedThroughputExceededException``."""
        if isinstance(self.original, ClientError):
            return self.original.response.get("Error", {}).get("Code")
        return None


class ConsistencyError(SessionStoreError):
    """The stored primary-key attribute is not a string."""
