"""Create the sessions table and enable DynamoDB TTL on it."""

from __future__ import annotations

import logging

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import StoreConfig
from .errors import BackendError

logger = logging.getLogger(__name__)

_TTL_ACTIVE = ("ENABLED", "ENABLING")


async def create_session_table(
    config: StoreConfig,
    session: aioboto3.Session | None = None,
    *,
    wait: bool = True,
) -> bool:
    """Create the table described by config. Returns False if it already existed.

    The table is keyed by ``config.primary_key`` (S) with on-demand billing.
    When ``config.enable_ttl`` is set, TTL is enabled on ``config.ttl_field``.
    """
    session = session or aioboto3.Session()
    async with session.client(
        "dynamodb",
        endpoint_url=config.endpoint_url,
        region_name=config.region_name,
    ) as client:
        try:
            created = await _create_table(client, config)
            if wait:
                waiter = client.get_waiter("table_exists")
                await waiter.wait(TableName=config.table_name)
            if config.enable_ttl:
                await _enable_ttl(client, config)
        except (ClientError, BotoCoreError) as e:
            raise BackendError("provision", e) from e
    return created


async def _create_table(client, config: StoreConfig) -> bool:
    try:
        await client.create_table(
            TableName=config.table_name,
            KeySchema=[{"AttributeName": config.primary_key, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": config.primary_key, "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") != "ResourceInUseException":
            raise
        logger.info("Table %s already exists", config.table_name)
        return False
    logger.info("Created table %s", config.table_name)
    return True


async def _enable_ttl(client, config: StoreConfig) -> None:
    described = await client.describe_time_to_live(TableName=config.table_name)
    ttl = described.get("TimeToLiveDescription", {})
    if ttl.get("TimeToLiveStatus") in _TTL_ACTIVE:
        if ttl.get("AttributeName") != config.ttl_field:
            logger.warning(
                "Table %s already expires items on %r, not %r",
                config.table_name,
                ttl.get("AttributeName"),
                config.ttl_field,
            )
        return
    await client.update_time_to_live(
        TableName=config.table_name,
        TimeToLiveSpecification={"Enabled": True, "AttributeName": config.ttl_field},
    )
    logger.info("Enabled TTL on %s.%s", config.table_name, config.ttl_field)
