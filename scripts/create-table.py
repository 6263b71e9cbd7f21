#!/usr/bin/env python3
"""
Create the DynamoDB sessions table used by dynastore.

Usage:
    python create-table.py --table sessions --enable-ttl
    python create-table.py --endpoint-url http://localhost:8000   # DynamoDB Local

Requirements:
    pip install dynastore

Settings not given on the command line are read from DYNASTORE_* environment
variables (see dynastore.config.Settings).
"""

import argparse
import asyncio
import sys

from dynastore.config import get_settings
from dynastore.errors import BackendError
from dynastore.provision import create_session_table


def main():
    parser = argparse.ArgumentParser(description="Create the dynastore sessions table")
    parser.add_argument("--table", help="Table name")
    parser.add_argument("--primary-key", help="Partition key attribute holding the session id")
    parser.add_argument("--ttl-field", help="Attribute holding the expiry timestamp")
    parser.add_argument("--enable-ttl", action="store_true", help="Enable DynamoDB TTL")
    parser.add_argument("--region", help="AWS region")
    parser.add_argument("--endpoint-url", help="DynamoDB endpoint (e.g. DynamoDB Local)")
    parser.add_argument("--no-wait", action="store_true", help="Do not wait for the table to become active")
    args = parser.parse_args()

    overrides = {
        "table_name": args.table,
        "primary_key": args.primary_key,
        "ttl_field": args.ttl_field,
        "region_name": args.region,
        "endpoint_url": args.endpoint_url,
    }
    config = get_settings().to_store_config().model_copy(
        update={k: v for k, v in overrides.items() if v}
    )
    if args.enable_ttl:
        config = config.model_copy(update={"enable_ttl": True})

    print(f"Table:       {config.table_name}")
    print(f"Primary key: {config.primary_key}")
    print(f"TTL:         {config.ttl_field if config.enable_ttl else 'disabled'}")
    print(f"Region:      {config.region_name}")
    print()

    try:
        created = asyncio.run(create_session_table(config, wait=not args.no_wait))
    except BackendError as e:
        print(f"  ✗ Failed: {e}")
        sys.exit(1)

    print("  ✓ Table created" if created else "  ✓ Table already exists")
    if config.enable_ttl:
        print(f"  ✓ TTL enabled on '{config.ttl_field}'")


if __name__ == "__main__":
    main()
