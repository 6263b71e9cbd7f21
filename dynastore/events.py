"""Structured session lifecycle events.

Events are logged to the ``dynastore.events`` logger as JSON — consumers
attach their own handlers (CloudWatch JSON formatter, Firehose, structlog,
etc.). Session IDs are bearer secrets, so events only carry a fingerprint.

Usage::

    from . import events
    events.session_event(
        activity=events.Activity.CREATED,
        status_id=events.Status.SUCCESS,
        session_id=session.id,
        session_name=session.name,
        message="Issued new session",
    )
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any

logger = logging.getLogger("dynastore.events")


class Activity:
    CREATED = "created"
    RESTORED = "restored"
    PERSISTED = "persisted"
    DESTROYED = "destroyed"
    LOAD_FAILED = "load_failed"


class Status:
    SUCCESS = 1
    FAILURE = 2


def fingerprint(session_id: str) -> str:
    """Short, non-reversible tag identifying a session in logs."""
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:16]


def emit(event: dict[str, Any]) -> None:
    """Log an event as JSON. Never raises; a failed emit is logged at debug."""
    try:
        logger.info(json.dumps(event, default=str))
    except (TypeError, ValueError) as e:
        logger.debug("Dropped unserializable session event: %s", e)


def session_event(
    *,
    activity: str,
    status_id: int,
    session_id: str,
    session_name: str,
    message: str = "",
    extra: dict[str, Any] | None = None,
) -> None:
    event: dict[str, Any] = {
        "activity": activity,
        "status_id": status_id,
        "status": "Success" if status_id == Status.SUCCESS else "Failure",
        "time": int(time.time() * 1000),
        "session": {
            "name": session_name,
            "fingerprint": fingerprint(session_id) if session_id else None,
        },
        "message": message,
    }
    if extra:
        event["metadata"] = extra
    emit(event)
