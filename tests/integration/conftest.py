"""Shared fixtures for integration tests against a real DynamoDB endpoint.

All integration tests are skipped unless DYNASTORE_ENDPOINT_URL is set, e.g.
to a DynamoDB Local container::

    docker run -p 8000:8000 amazon/dynamodb-local
    DYNASTORE_ENDPOINT_URL=http://localhost:8000 pytest -m integration

DynamoDB Local accepts any credentials; set AWS_ACCESS_KEY_ID and
AWS_SECRET_ACCESS_KEY to dummy values if none are configured.
"""

from __future__ import annotations

import asyncio
import os
import uuid

import pytest

from dynastore.config import CookieOptions, StoreConfig
from dynastore.provision import create_session_table

pytestmark = pytest.mark.integration


@pytest.fixture(scope="session")
def endpoint_url():
    """Return the DynamoDB endpoint or skip."""
    url = os.environ.get("DYNASTORE_ENDPOINT_URL")
    if not url:
        pytest.skip("Integration tests require DYNASTORE_ENDPOINT_URL")
    return url


@pytest.fixture(scope="session")
def real_config(endpoint_url) -> StoreConfig:
    """Config for a freshly provisioned, uniquely named table."""
    config = StoreConfig(
        table_name=f"dynastore_test_{uuid.uuid4().hex[:8]}",
        enable_ttl=True,
        endpoint_url=endpoint_url,
        region_name=os.environ.get("AWS_DEFAULT_REGION", "us-west-2"),
        consistent_read=True,
        cookie_options=CookieOptions(max_age=3600),
    )
    asyncio.run(create_session_table(config))
    return config
