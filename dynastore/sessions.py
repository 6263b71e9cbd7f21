"""Session objects, the session-store contract and the per-request registry."""

from __future__ import annotations

import copy
from typing import Any, Protocol, runtime_checkable

from starlette.requests import HTTPConnection

from .config import CookieOptions


class CookieWriter(Protocol):
    """Anything with Starlette's ``Response.set_cookie`` signature."""

    def set_cookie(
        self,
        key: str,
        value: str = "",
        max_age: int | None = None,
        expires: Any = None,
        path: str | None = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = False,
        samesite: Any = "lax",
    ) -> None:
        ...


@runtime_checkable
class SessionStore(Protocol):
    """Protocol every session store implements."""

    async def get(self, request: HTTPConnection, name: str) -> Session:
        """Return the session for name, cached for the lifetime of the request."""
        ...

    async def new(self, request: HTTPConnection, name: str) -> Session:
        """Restore the session named by the request cookie, or create one."""
        ...

    async def save(
        self, request: HTTPConnection, response: CookieWriter, session: Session
    ) -> None:
        """Persist the session and emit its cookie on the response."""
        ...


class Session:
    """Server-side session state for one request.

    Attributes:
        id: The session identifier carried by the cookie.
        values: Attribute map persisted with the session.
        options: Cookie attributes for this session (a copy of the store defaults).
        is_new: ``True`` if the session was created during the current request.
    """

    def __init__(
        self,
        store: SessionStore,
        name: str,
        *,
        options: CookieOptions | None = None,
    ) -> None:
        self.id = ""
        self.values: dict[Any, Any] = {}
        self.options = options if options is not None else CookieOptions()
        self.is_new = False
        self._store = store
        self._name = name
        self._clean: dict[Any, Any] = {}

    def __repr__(self) -> str:
        return f"<Session name={self._name!r} is_new={self.is_new} keys={len(self.values)}>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def modified(self) -> bool:
        return self.values != self._clean

    @property
    def destroyed(self) -> bool:
        return self.options.max_age < 0

    def mark_clean(self) -> None:
        """Record the current values as the stored state."""
        self._clean = copy.deepcopy(self.values)

    def destroy(self) -> None:
        """Delete the record and expire the cookie on the next save."""
        self.options.max_age = -1

    async def save(self, request: HTTPConnection, response: CookieWriter) -> None:
        await self._store.save(request, response, self)


class SessionRegistry:
    """Sessions opened during one request, keyed by name."""

    def __init__(self, request: HTTPConnection) -> None:
        self._request = request
        self._sessions: dict[str, Session] = {}

    def __iter__(self):
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, store: SessionStore, name: str) -> Session:
        session = self._sessions.get(name)
        if session is None:
            session = await store.new(self._request, name)
            self._sessions[name] = session
        return session

    async def save_all(self, response: CookieWriter) -> None:
        for session in self:
            await session.save(self._request, response)


def get_registry(request: HTTPConnection) -> SessionRegistry:
    """Return the registry attached to this request, creating it on first use."""
    registry = getattr(request.state, "session_registry", None)
    if registry is None:
        registry = SessionRegistry(request)
        request.state.session_registry = registry
    return registry
