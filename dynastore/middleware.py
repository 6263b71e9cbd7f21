"""ASGI session middleware.

Opens the session named ``session_name`` through the store for every request
and attaches it to ``request.state.session``. On response, saves every session
the request opened (through the store's registry) that needs it, and appends
the resulting ``set-cookie`` headers.
"""

from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .sessions import Session, SessionStore, get_registry

SESSION_NAME = "session"


class SessionMiddleware:
    """ASGI middleware for DynamoDB-backed sessions.

    A session is saved when it is new, its values changed, it was destroyed,
    or ``always_save`` is set (sliding expiry with ``refresh_cookies``).
    """

    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        session_name: str = SESSION_NAME,
        always_save: bool = False,
    ) -> None:
        self.app = app
        self.store = store
        self.session_name = session_name
        self.always_save = always_save

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        conn = HTTPConnection(scope)
        session = await self.store.get(conn, self.session_name)
        conn.state.session = session

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                cookies = Response()
                for opened in get_registry(conn):
                    if self._needs_save(opened):
                        await opened.save(conn, cookies)

                headers = MutableHeaders(scope=message)
                for key, value in cookies.raw_headers:
                    if key == b"set-cookie":
                        headers.append("set-cookie", value.decode("latin-1"))

            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _needs_save(self, session: Session) -> bool:
        return self.always_save or session.is_new or session.modified or session.destroyed
