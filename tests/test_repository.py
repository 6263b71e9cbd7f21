"""Tests for the session repositories.

The DynamoDB repository runs against a dict-backed fake of the low-level
client (see _support.FakeDynamoDB); moto doesn't fully support aiobotocore's
async response handling.
"""

import asyncio
import time

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from dynastore.config import StoreConfig
from dynastore.errors import BackendError, EncodingError, NotFoundError
from dynastore.repository import DynamoDBRepository, MemoryRepository, SessionRepository

from _support import FakeDynamoDB, mock_client


def _throttled():
    return ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
        "PutItem",
    )


def test_repositories_satisfy_protocol(store_config):
    assert isinstance(DynamoDBRepository(store_config), SessionRepository)
    assert isinstance(MemoryRepository(store_config), SessionRepository)


# ── DynamoDB repository ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_put_and_get(dynamodb_repository):
    await dynamodb_repository.put("sess-1", {"user": "alice", "visits": 2})
    values = await dynamodb_repository.get("sess-1")

    assert values == {"id": "sess-1", "user": "alice", "visits": 2}


@pytest.mark.asyncio
async def test_put_writes_attribute_values(dynamodb_repository, fake_dynamodb):
    await dynamodb_repository.put("sess-1", {"user": "alice"})

    operation, kwargs = fake_dynamodb.calls[-1]
    assert operation == "put_item"
    assert kwargs["TableName"] == "test_sessions"
    assert kwargs["Item"] == {"id": {"S": "sess-1"}, "user": {"S": "alice"}}


@pytest.mark.asyncio
async def test_put_overrides_caller_primary_key(dynamodb_repository):
    await dynamodb_repository.put("sess-1", {"id": "forged", "user": "alice"})
    values = await dynamodb_repository.get("sess-1")

    assert values["id"] == "sess-1"


@pytest.mark.asyncio
async def test_get_nonexistent(dynamodb_repository):
    with pytest.raises(NotFoundError) as exc_info:
        await dynamodb_repository.get("nonexistent")
    assert exc_info.value.session_id == "nonexistent"


@pytest.mark.asyncio
async def test_delete(dynamodb_repository):
    await dynamodb_repository.put("sess-1", {"key": "val"})
    await dynamodb_repository.delete("sess-1")

    with pytest.raises(NotFoundError):
        await dynamodb_repository.get("sess-1")


@pytest.mark.asyncio
async def test_delete_nonexistent(dynamodb_repository):
    # Should not raise
    await dynamodb_repository.delete("nonexistent")


@pytest.mark.asyncio
async def test_put_overwrites_existing(dynamodb_repository):
    await dynamodb_repository.put("sess-1", {"version": 1, "stale": True})
    await dynamodb_repository.put("sess-1", {"version": 2})
    values = await dynamodb_repository.get("sess-1")

    assert values["version"] == 2
    assert "stale" not in values


@pytest.mark.asyncio
async def test_put_sets_ttl(dynamodb_repository, fake_dynamodb):
    await dynamodb_repository.put("sess-1", {"key": "val"}, ttl_seconds=3600)

    item = fake_dynamodb.items["sess-1"]
    assert "ttl" in item
    assert abs(int(item["ttl"]["N"]) - (time.time() + 3600)) < 5


@pytest.mark.asyncio
async def test_put_without_ttl(dynamodb_repository, fake_dynamodb):
    await dynamodb_repository.put("sess-1", {"key": "val"})

    assert "ttl" not in fake_dynamodb.items["sess-1"]


@pytest.mark.asyncio
async def test_custom_key_names():
    config = StoreConfig(table_name="custom", primary_key="session_id", ttl_field="expires_at")
    fake = FakeDynamoDB(primary_key="session_id")
    repo = DynamoDBRepository(config)

    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(repo._session, "client", lambda *a, **kw: mock_client(fake))
        await repo.put("sess-1", {"key": "val"}, ttl_seconds=60)
        values = await repo.get("sess-1")

    assert values["session_id"] == "sess-1"
    assert "expires_at" in values
    assert "id" not in values


@pytest.mark.asyncio
async def test_get_uses_consistent_read_setting(fake_dynamodb):
    repo = DynamoDBRepository(StoreConfig(consistent_read=True))
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(repo._session, "client", lambda *a, **kw: mock_client(fake_dynamodb))
        with pytest.raises(NotFoundError):
            await repo.get("sess-1")

    _, kwargs = fake_dynamodb.calls[-1]
    assert kwargs["ConsistentRead"] is True


@pytest.mark.asyncio
async def test_expired_record_reads_as_missing(fake_dynamodb):
    repo = DynamoDBRepository(StoreConfig(enable_ttl=True))
    fake_dynamodb.items["sess-1"] = {
        "id": {"S": "sess-1"},
        "key": {"S": "val"},
        "ttl": {"N": str(int(time.time()) - 10)},
    }
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(repo._session, "client", lambda *a, **kw: mock_client(fake_dynamodb))
        with pytest.raises(NotFoundError):
            await repo.get("sess-1")

    # Expiry is left to DynamoDB's TTL sweeper
    assert "sess-1" in fake_dynamodb.items


@pytest.mark.asyncio
async def test_client_error_is_wrapped(dynamodb_repository, fake_dynamodb):
    fake_dynamodb.error = _throttled()

    with pytest.raises(BackendError) as exc_info:
        await dynamodb_repository.put("sess-1", {"key": "val"})

    assert exc_info.value.operation == "put_item"
    assert exc_info.value.code == "ProvisionedThroughputExceededException"
    assert exc_info.value.__cause__ is fake_dynamodb.error


@pytest.mark.asyncio
async def test_connection_error_is_wrapped(dynamodb_repository, fake_dynamodb):
    fake_dynamodb.error = EndpointConnectionError(endpoint_url="http://localhost:8000")

    with pytest.raises(BackendError) as exc_info:
        await dynamodb_repository.get("sess-1")

    assert exc_info.value.code is None
    assert isinstance(exc_info.value.original, EndpointConnectionError)


@pytest.mark.asyncio
async def test_operation_timeout(fake_dynamodb):
    repo = DynamoDBRepository(StoreConfig(operation_timeout=0.01))
    fake_dynamodb.delay = 1
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(repo._session, "client", lambda *a, **kw: mock_client(fake_dynamodb))
        with pytest.raises(BackendError) as exc_info:
            await repo.get("sess-1")

    assert isinstance(exc_info.value.original, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_encoding_error_skips_backend(dynamodb_repository, fake_dynamodb):
    with pytest.raises(EncodingError):
        await dynamodb_repository.put("sess-1", {"bad": object()})

    assert fake_dynamodb.calls == []


# ── Memory repository ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_memory_put_and_get(memory_repository):
    await memory_repository.put("sess-1", {"id": "forged", "nested": {"a": [1, 2.5]}})
    values = await memory_repository.get("sess-1")

    assert values == {"id": "sess-1", "nested": {"a": [1, 2.5]}}


@pytest.mark.asyncio
async def test_memory_delete_nonexistent(memory_repository):
    # Should not raise
    await memory_repository.delete("nonexistent")


@pytest.mark.asyncio
async def test_memory_get_after_delete(memory_repository):
    await memory_repository.put("sess-1", {"key": "val"})
    await memory_repository.delete("sess-1")

    with pytest.raises(NotFoundError):
        await memory_repository.get("sess-1")


@pytest.mark.asyncio
async def test_memory_expiry():
    repo = MemoryRepository(StoreConfig(enable_ttl=True))
    await repo.put("sess-1", {"key": "val"}, ttl_seconds=60)
    assert (await repo.get("sess-1"))["key"] == "val"

    # Simulate expiry by rewriting the stored timestamp
    repo._items["sess-1"]["ttl"] = {"N": str(int(time.time()) - 1)}

    with pytest.raises(NotFoundError):
        await repo.get("sess-1")
    assert "sess-1" not in repo._items


def test_memory_repository_requires_config():
    with pytest.raises(TypeError):
        MemoryRepository()
