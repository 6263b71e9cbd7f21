"""Session record storage.

A repository stores one record per session ID. ``DynamoDBRepository`` talks to
DynamoDB through aioboto3; ``MemoryRepository`` keeps items in-process.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from . import codec
from .config import StoreConfig
from .errors import BackendError, NotFoundError

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionRepository(Protocol):
    """Protocol for session record storage."""

    async def put(
        self,
        session_id: str,
        attributes: Mapping[Any, Any],
        *,
        ttl_seconds: int | None = None,
    ) -> None:
        """Write the full record for session_id, replacing any previous one."""
        ...

    async def get(self, session_id: str) -> dict[str, Any]:
        """Return the decoded record. Raises NotFoundError if there is none."""
        ...

    async def delete(self, session_id: str) -> None:
        """Remove the record. Deleting a missing record is not an error."""
        ...


def _record_values(
    config: StoreConfig,
    session_id: str,
    attributes: Mapping[Any, Any],
    ttl_seconds: int | None,
) -> dict[Any, Any]:
    values = dict(attributes)
    values[config.primary_key] = session_id
    if ttl_seconds is not None:
        values[config.ttl_field] = int(time.time()) + ttl_seconds
    return values


def _is_expired(config: StoreConfig, values: Mapping[str, Any]) -> bool:
    if not config.enable_ttl:
        return False
    expires = values.get(config.ttl_field)
    if isinstance(expires, bool) or not isinstance(expires, (int, float)):
        return False
    return expires <= time.time()


class DynamoDBRepository:
    """Session records in a DynamoDB table.

    Table schema:
        Partition key: <primary_key> (S), "id" by default
        Attributes: one per session value, plus <ttl_field> (N) when TTL is on

    Enable DynamoDB TTL on the TTL attribute for automatic cleanup
    (see ``dynastore.provision``). DynamoDB removes expired items lazily, so
    ``get`` also treats an item past its expiry as missing.
    """

    def __init__(
        self,
        config: StoreConfig,
        session: aioboto3.Session | None = None,
    ) -> None:
        self._config = config
        self._session = session or aioboto3.Session()

    async def put(
        self,
        session_id: str,
        attributes: Mapping[Any, Any],
        *,
        ttl_seconds: int | None = None,
    ) -> None:
        item = codec.encode(_record_values(self._config, session_id, attributes, ttl_seconds))
        await self._call("put_item", TableName=self._config.table_name, Item=item)

    async def get(self, session_id: str) -> dict[str, Any]:
        response = await self._call(
            "get_item",
            TableName=self._config.table_name,
            Key=self._key(session_id),
            ConsistentRead=self._config.consistent_read,
        )
        item = response.get("Item")
        if not item:
            raise NotFoundError(session_id)

        values = codec.decode(item)
        if _is_expired(self._config, values):
            logger.debug("Ignoring expired session record awaiting TTL sweep")
            raise NotFoundError(session_id)
        return values

    async def delete(self, session_id: str) -> None:
        await self._call(
            "delete_item",
            TableName=self._config.table_name,
            Key=self._key(session_id),
        )

    def _key(self, session_id: str) -> dict[str, dict[str, str]]:
        return {self._config.primary_key: {"S": session_id}}

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._session.client(
                "dynamodb",
                endpoint_url=self._config.endpoint_url,
                region_name=self._config.region_name,
            ) as client:
                return await asyncio.wait_for(
                    getattr(client, operation)(**kwargs),
                    timeout=self._config.operation_timeout,
                )
        except (ClientError, BotoCoreError, asyncio.TimeoutError) as e:
            logger.warning("DynamoDB %s on %s failed: %s", operation, self._config.table_name, e)
            raise BackendError(operation, e) from e


class MemoryRepository:
    """In-memory session records for development/testing.

    Not suitable for production — records are lost on restart and not
    shared across processes. Items are stored in encoded form, so values
    behave exactly as they would against DynamoDB.
    """

    def __init__(self, config: StoreConfig) -> None:
        self._config = config
        self._items: dict[str, codec.Item] = {}

    async def put(
        self,
        session_id: str,
        attributes: Mapping[Any, Any],
        *,
        ttl_seconds: int | None = None,
    ) -> None:
        values = _record_values(self._config, session_id, attributes, ttl_seconds)
        self._items[session_id] = codec.encode(values)

    async def get(self, session_id: str) -> dict[str, Any]:
        item = self._items.get(session_id)
        if item is None:
            raise NotFoundError(session_id)
        values = codec.decode(item)
        if _is_expired(self._config, values):
            del self._items[session_id]
            raise NotFoundError(session_id)
        return values

    async def delete(self, session_id: str) -> None:
        self._items.pop(session_id, None)
