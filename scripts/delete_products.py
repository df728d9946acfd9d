#!/usr/bin/env python3
"""
Delete products listed in a delete-list feed from Google Merchant Center.

Usage:
    python scripts/delete_products.py --file data_feeds/delete.xml [--dry-run]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path to import merchant_sync modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from merchant_sync.config import Settings, ConfigurationError, get_settings
from merchant_sync.core.cancellation import CancellationToken
from merchant_sync.core.events import SyncEventEmitter
from merchant_sync.core.variant_cache import VariantCache
from merchant_sync.core.feed.parser import FeedParseError, load_delete_list
from merchant_sync.core.ops.delete_products import run_delete_products_job
from merchant_sync.core.ops.sync_products import RunReport
from merchant_sync.main import configure_logging, build_merchant_client

logger = logging.getLogger("delete_products")


async def run(args: argparse.Namespace, settings: Settings, token: CancellationToken) -> RunReport:
    merchant_id = settings.require_merchant_id()
    offer_ids = load_delete_list(args.file)

    # Only touch an existing cache; never create one from this tool
    cache_path = Path(settings.variant_cache_path)
    cache = VariantCache(cache_path) if cache_path.is_file() and not args.dry_run else None
    client = None if args.dry_run or not offer_ids else build_merchant_client(settings)

    try:
        return await run_delete_products_job(
            client,
            merchant_id,
            offer_ids,
            settings.mapping_options(),
            SyncEventEmitter("delete"),
            cache=cache,
            cancel_check=token,
            dry_run=args.dry_run,
        )
    finally:
        if client is not None:
            await client.close()
        if cache is not None:
            cache.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Delete feed-listed products from Google Merchant Center.")
    parser.add_argument("--file", required=True, help="Delete-list XML (<products><product> with code/id)")
    parser.add_argument("--dry-run", action="store_true", help="Log deletes without calling the API")
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(str(e))
        return 1

    configure_logging(settings.log_level)
    token = CancellationToken(grace_seconds=settings.force_exit_grace_seconds).install()

    try:
        asyncio.run(run(args, settings, token))
    except (ConfigurationError, FeedParseError) as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Fatal error while deleting Google Merchant Center products: {e}")
        return 1
    finally:
        token.uninstall()

    return 0


if __name__ == "__main__":
    sys.exit(main())
