"""
Delete products job operation.

Deletes every offer listed in a delete-list feed, one at a time, and drops
successfully deleted offers from the variant cache when one is given.
"""

import logging
from typing import List, Optional, Callable

from merchant_sync.core.events import SyncEventEmitter
from merchant_sync.core.merchant_client import MerchantClient
from merchant_sync.core.variant_cache import VariantCache
from merchant_sync.core.feed.models import MappingOptions, build_rest_id
from merchant_sync.core.ops.sync_products import RunReport, SyncPhase

logger = logging.getLogger(__name__)


async def run_delete_products_job(
    client: Optional[MerchantClient],
    merchant_id: str,
    offer_ids: List[str],
    options: MappingOptions,
    emitter: SyncEventEmitter,
    cache: Optional[VariantCache] = None,
    cancel_check: Optional[Callable[[], bool]] = None,
    dry_run: bool = False
) -> RunReport:
    """
    Run delete products job.

    Args:
        client: Catalog client (may be None in dry-run)
        merchant_id: Merchant Center account id
        offer_ids: Offer IDs to delete (already deduplicated)
        options: Mapping options (channel/language/country for delete keys)
        emitter: SyncEventEmitter for progress updates
        cache: Optional variant cache to keep in step with the catalog
        cancel_check: Returns True once a stop has been requested
        dry_run: Log intended deletes only

    Returns:
        RunReport (only the delete counters are used)
    """
    report = RunReport(dry_run=dry_run, phase=SyncPhase.DELETE_STALE)

    if not offer_ids:
        await emitter.emit_log("WARN", "No products found to delete.")
        report.phase = SyncPhase.DONE
        await emitter.emit_status("done")
        return report

    total = len(offer_ids)
    await emitter.emit_log("INFO", f"Preparing to delete {total} products.")
    await emitter.emit_status("running", total)

    for index, offer_id in enumerate(offer_ids):
        if cancel_check and cancel_check():
            report.cancelled = True
            await emitter.emit_log("WARN", f"Stop requested; deleted {report.deleted}/{total} products")
            break

        rest_id = build_rest_id(offer_id, options.channel, options.content_language, options.target_country)
        if dry_run:
            logger.info(f"[dry-run] Would delete product {rest_id}")
            report.deleted += 1
        else:
            try:
                await client.delete_product(merchant_id, rest_id)
                report.deleted += 1
                logger.info(f"Deleted product {rest_id}")
                if cache is not None and cache.delete(offer_id):
                    logger.debug(f"Removed {offer_id} from variant cache")
            except Exception as e:
                report.record_failure(offer_id, "delete", e)
                logger.error(f"Failed to delete product {rest_id}: {e}")

        await emitter.emit_progress(
            index + 1,
            total,
            success=report.deleted,
            failed=report.delete_failed,
            current={"offer_id": offer_id}
        )

    if report.cancelled:
        await emitter.emit_status("cancelled")
    else:
        report.phase = SyncPhase.DONE
        await emitter.emit_status("done")

    prefix = "[dry-run] " if dry_run else ""
    await emitter.emit_log(
        "INFO",
        f"{prefix}Delete finished. Success: {report.deleted}, Failed: {report.delete_failed}"
    )
    return report
