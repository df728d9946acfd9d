"""
Command-line entry point: sync the product feed to Google Merchant Center.

Usage:
    merchant-sync [--xml PATH] [--meta PATH] [--limit N] [--dry-run]
                  [--include-description] [--cache PATH]

Exit codes: 0 finished (including a cancelled run with its report),
1 fatal startup error, 130 forced exit on a repeated interrupt.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, List

from merchant_sync.config import Settings, ConfigurationError, get_settings
from merchant_sync.core.auth import load_credentials
from merchant_sync.core.cancellation import CancellationToken
from merchant_sync.core.events import SyncEventEmitter
from merchant_sync.core.merchant_client import MerchantClient
from merchant_sync.core.variant_cache import VariantCache
from merchant_sync.core.feed.parser import FeedParseError
from merchant_sync.core.feed.service import load_variant_batch
from merchant_sync.core.ops.sync_products import RunReport, run_sync_job

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def parse_limit(value: Optional[str]) -> Optional[int]:
    """Positive integer, or None (no limit) for anything else."""
    if value is None:
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid --limit value: {value!r}")
        return None
    return limit if limit > 0 else None


def build_merchant_client(settings: Settings) -> MerchantClient:
    credentials = load_credentials(settings.service_account_json, settings.application_credentials)
    return MerchantClient(
        credentials=credentials,
        rate_limit_rps=settings.merchant_rate_limit_rps,
        timeout=settings.merchant_request_timeout,
        max_retries=settings.merchant_max_retries,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="merchant-sync",
        description="Upload changed feed variants to Google Merchant Center and delete stale ones."
    )
    parser.add_argument("--xml", dest="xml_path", help="Product feed XML (default: FEED_XML_PATH)")
    parser.add_argument("--meta", dest="meta_path", help="Metadata XML (default: FEED_META_PATH)")
    parser.add_argument("--limit", help="Only map the first N feed products")
    parser.add_argument("--dry-run", action="store_true", help="Log operations without calling the API")
    parser.add_argument(
        "--include-description",
        action="store_true",
        help="Use description text for gender/age inference"
    )
    parser.add_argument("--cache", dest="cache_path", help="Variant cache file (default: VARIANT_CACHE_PATH)")
    return parser


async def run(args: argparse.Namespace, settings: Settings, token: CancellationToken) -> RunReport:
    """Wire settings, cache, client and feed into one sync pass."""
    merchant_id = settings.require_merchant_id()
    options = settings.mapping_options()
    inference = settings.inference_config()
    if args.include_description:
        inference.include_description = True

    xml_path = args.xml_path or settings.feed_xml_path
    meta_path = args.meta_path or settings.feed_meta_path
    limit = parse_limit(args.limit)

    client = None if args.dry_run else build_merchant_client(settings)
    cache = VariantCache(args.cache_path or settings.variant_cache_path)
    emitter = SyncEventEmitter("sync")

    try:
        return await run_sync_job(
            client,
            cache,
            merchant_id,
            build=lambda: load_variant_batch(xml_path, meta_path, options, inference, limit=limit),
            options=options,
            emitter=emitter,
            cancel_check=token,
            dry_run=args.dry_run,
        )
    finally:
        if client is not None:
            await client.close()
        cache.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(str(e))
        return 1

    configure_logging(settings.log_level)
    token = CancellationToken(grace_seconds=settings.force_exit_grace_seconds).install()

    try:
        report = asyncio.run(run(args, settings, token))
    except (ConfigurationError, FeedParseError) as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Fatal error while syncing Google Merchant Center products: {e}")
        return 1
    finally:
        token.uninstall()

    logger.info(report.summary())
    for failure in report.failures:
        logger.info(f"  failed {failure.operation} {failure.offer_id}: {failure.error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
