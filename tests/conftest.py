"""Shared fixtures for the dynastore test suite."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from _support import FakeDynamoDB, mock_client
from dynastore.config import CookieOptions, StoreConfig
from dynastore.repository import DynamoDBRepository, MemoryRepository
from dynastore.store import Store

TABLE_NAME = "test_sessions"


@pytest.fixture
def store_config() -> StoreConfig:
    return StoreConfig(
        table_name=TABLE_NAME,
        cookie_options=CookieOptions(max_age=3600),
    )


@pytest.fixture
def memory_repository(store_config) -> MemoryRepository:
    return MemoryRepository(store_config)


@pytest.fixture
def store(store_config, memory_repository) -> Store:
    return Store(store_config, memory_repository)


@pytest.fixture
def fake_dynamodb() -> FakeDynamoDB:
    return FakeDynamoDB()


@pytest.fixture
def dynamodb_repository(store_config, fake_dynamodb):
    repo = DynamoDBRepository(store_config)
    with patch.object(repo._session, "client", return_value=mock_client(fake_dynamodb)):
        yield repo
