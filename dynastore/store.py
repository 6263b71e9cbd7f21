"""Session store backed by a session repository (DynamoDB by default).

Lifecycle per request:

* ``new`` restores the session named by the request cookie, or issues a
  fresh one when there is no cookie or the record cannot be loaded.
* ``save`` persists the session, then either deletes it (negative
  ``max_age``: logout) or emits the session cookie when the session is new
  or cookie refresh is enabled.

Persist and delete on logout are two independent calls; a crash between them
leaves a record that TTL or a later delete cleans up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from itsdangerous import BadSignature, URLSafeTimedSerializer
from starlette.requests import HTTPConnection

from . import events
from .config import StoreConfig
from .errors import ConsistencyError, NotFoundError, SessionStoreError
from .ids import generate_session_id
from .repository import DynamoDBRepository, SessionRepository
from .sessions import CookieWriter, Session, get_registry

logger = logging.getLogger(__name__)

COOKIE_SALT = "dynastore.session"


@dataclass(frozen=True)
class Found:
    session: Session


@dataclass(frozen=True)
class Missing:
    error: SessionStoreError


LoadOutcome = Union[Found, Missing]


class Store:
    """Session store exposing ``get`` / ``new`` / ``save``.

    Args:
        config: Immutable store configuration.
        repository: Record storage (default: DynamoDBRepository(config)).
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        repository: SessionRepository | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._repository = repository if repository is not None else DynamoDBRepository(self._config)
        self._signer = None
        if self._config.secret_key is not None:
            self._signer = URLSafeTimedSerializer(
                self._config.secret_key.get_secret_value(), salt=COOKIE_SALT
            )

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def repository(self) -> SessionRepository:
        return self._repository

    async def get(self, request: HTTPConnection, name: str) -> Session:
        return await get_registry(request).get(self, name)

    async def new(self, request: HTTPConnection, name: str) -> Session:
        """Return the stored session for the request cookie, or a new one.

        Load failures fall through to a fresh session: a missing record and an
        unreachable table look the same to the caller. With ``strict_load``
        only ``NotFoundError`` falls through and other failures propagate.
        """
        session_id = self._read_cookie(request, name)
        if session_id is not None:
            outcome = await self.restore(session_id, name)
            if isinstance(outcome, Found):
                return outcome.session
            if self._config.strict_load and not isinstance(outcome.error, NotFoundError):
                raise outcome.error

        session = self._make_session(name)
        session.id = generate_session_id()
        session.is_new = True
        session.mark_clean()
        events.session_event(
            activity=events.Activity.CREATED,
            status_id=events.Status.SUCCESS,
            session_id=session.id,
            session_name=name,
            message="Issued new session",
        )
        return session

    async def restore(self, session_id: str, name: str) -> LoadOutcome:
        """Load session_id into a new Session object, reporting the outcome."""
        session = self._make_session(name)
        session.id = session_id
        try:
            await self.load(session_id, session)
        except SessionStoreError as e:
            if not isinstance(e, NotFoundError):
                logger.warning("Could not load session %s: %s", events.fingerprint(session_id), e)
            events.session_event(
                activity=events.Activity.LOAD_FAILED,
                status_id=events.Status.FAILURE,
                session_id=session_id,
                session_name=name,
                message=type(e).__name__,
            )
            return Missing(e)

        session.mark_clean()
        events.session_event(
            activity=events.Activity.RESTORED,
            status_id=events.Status.SUCCESS,
            session_id=session.id,
            session_name=name,
            message="Restored session from cookie",
        )
        return Found(session)

    async def load(self, session_id: str, session: Session) -> None:
        """Merge the stored record for session_id into session.values.

        Raises NotFoundError if there is no record, and ConsistencyError if
        the stored primary key is not a string.
        """
        stored = await self._repository.get(session_id)
        session.values.update(stored)

        key = self._config.primary_key
        if key in session.values:
            stored_id = session.values[key]
            if not isinstance(stored_id, str):
                raise ConsistencyError(
                    f"primary key {key!r} holds {type(stored_id).__name__}, expected str"
                )
            session.id = stored_id

    async def persist(self, session: Session) -> None:
        session.values[self._config.primary_key] = session.id
        ttl_seconds = self._config.effective_ttl_seconds if self._config.enable_ttl else None
        await self._repository.put(session.id, session.values, ttl_seconds=ttl_seconds)

    async def delete(self, session_id: str) -> None:
        await self._repository.delete(session_id)

    async def save(
        self, request: HTTPConnection, response: CookieWriter, session: Session
    ) -> None:
        await self.persist(session)

        if session.destroyed:
            self._set_cookie(response, session, "")
            await self.delete(session.id)
            events.session_event(
                activity=events.Activity.DESTROYED,
                status_id=events.Status.SUCCESS,
                session_id=session.id,
                session_name=session.name,
                message="Session deleted",
            )
            return

        session.mark_clean()
        events.session_event(
            activity=events.Activity.PERSISTED,
            status_id=events.Status.SUCCESS,
            session_id=session.id,
            session_name=session.name,
        )
        if session.is_new or self._config.refresh_cookies:
            self._set_cookie(response, session, self._encode_cookie(session.id))

    def _make_session(self, name: str) -> Session:
        return Session(self, name, options=self._config.cookie_options.model_copy())

    def _read_cookie(self, request: HTTPConnection, name: str) -> str | None:
        raw = request.cookies.get(name)
        if not raw:
            return None
        if self._signer is None:
            return raw
        max_age = self._config.cookie_options.max_age
        try:
            return self._signer.loads(raw, max_age=max_age if max_age > 0 else None)
        except BadSignature:
            logger.debug("Ignoring session cookie %r with a bad signature", name)
            return None

    def _encode_cookie(self, session_id: str) -> str:
        if self._signer is None:
            return session_id
        return self._signer.dumps(session_id)

    @staticmethod
    def _set_cookie(response: CookieWriter, session: Session, value: str) -> None:
        opts = session.options
        response.set_cookie(
            key=session.name,
            value=value,
            max_age=opts.max_age or None,
            path=opts.path,
            domain=opts.domain,
            secure=opts.secure,
            httponly=opts.http_only,
            samesite=opts.same_site,
        )
