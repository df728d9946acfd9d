"""
Catalog sync job operation.

Phases run in order: LOAD_CACHE -> BUILD_VARIANTS -> DIFF -> DELETE_STALE ->
UPLOAD_CHANGED -> DONE. Remote calls are made one at a time. Cancellation is
polled before every delete and every upload; completed work is never rolled
back. A failed item leaves its cache entry untouched and the run continues.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Optional, Callable, Sequence

from merchant_sync.core.events import SyncEventEmitter
from merchant_sync.core.merchant_client import MerchantClient
from merchant_sync.core.variant_cache import VariantCache
from merchant_sync.core.feed.adapters import variant_to_request
from merchant_sync.core.feed.fingerprint import fingerprint
from merchant_sync.core.feed.models import (
    CanonicalVariant,
    CachedVariantRecord,
    UploadQueueItem,
    MappingOptions,
    build_rest_id,
)
from merchant_sync.core.feed.service import VariantBatch

logger = logging.getLogger(__name__)


class SyncInvariantError(Exception):
    """The computed operation plan violates a consistency rule."""
    pass


class SyncPhase(str, Enum):
    LOAD_CACHE = "LOAD_CACHE"
    BUILD_VARIANTS = "BUILD_VARIANTS"
    DIFF = "DIFF"
    DELETE_STALE = "DELETE_STALE"
    UPLOAD_CHANGED = "UPLOAD_CHANGED"
    DONE = "DONE"


@dataclass
class FailedItem:
    offer_id: str
    operation: str  # "upload" or "delete"
    error: str


@dataclass
class RunReport:
    """Outcome of one sync or delete run."""
    uploaded: int = 0
    upload_failed: int = 0
    skipped_unchanged: int = 0
    deleted: int = 0
    delete_failed: int = 0
    cancelled: bool = False
    dry_run: bool = False
    phase: SyncPhase = SyncPhase.LOAD_CACHE
    failures: List[FailedItem] = field(default_factory=list)

    def record_failure(self, offer_id: str, operation: str, error: Exception):
        self.failures.append(FailedItem(offer_id=offer_id, operation=operation, error=str(error)))
        if operation == "delete":
            self.delete_failed += 1
        else:
            self.upload_failed += 1

    def summary(self) -> str:
        prefix = "[dry-run] " if self.dry_run else ""
        state = "cancelled" if self.cancelled else "finished"
        return (
            f"{prefix}Sync {state} at {self.phase.value}. "
            f"Uploaded: {self.uploaded}, Upload failed: {self.upload_failed}, "
            f"Unchanged: {self.skipped_unchanged}, Deleted: {self.deleted}, "
            f"Delete failed: {self.delete_failed}"
        )


@dataclass
class SyncPlan:
    uploads: List[UploadQueueItem] = field(default_factory=list)
    stale_offer_ids: List[str] = field(default_factory=list)
    unchanged: int = 0


def diff_variants(
    variants: Sequence[CanonicalVariant],
    cached: Dict[str, CachedVariantRecord]
) -> SyncPlan:
    """
    Compare fresh variants with the cache.

    A variant is uploaded when its offer ID is not cached or its fingerprint
    differs from the cached hash. Cached offer IDs missing from the batch are stale.

    Raises:
        SyncInvariantError: On duplicate offer IDs in the batch, or if an offer
                            ID would be both deleted and uploaded.
    """
    plan = SyncPlan()
    current_ids = set()

    for variant in variants:
        if variant.offer_id in current_ids:
            raise SyncInvariantError(f"Duplicate offer ID in variant batch: {variant.offer_id}")
        current_ids.add(variant.offer_id)

        content_hash = fingerprint(variant)
        record = cached.get(variant.offer_id)
        if record is not None and record.hash == content_hash:
            plan.unchanged += 1
            continue
        plan.uploads.append(UploadQueueItem(variant=variant, hash=content_hash))

    plan.stale_offer_ids = [offer_id for offer_id in cached if offer_id not in current_ids]

    overlap = {item.variant.offer_id for item in plan.uploads} & set(plan.stale_offer_ids)
    if overlap:
        raise SyncInvariantError(f"Offer IDs scheduled for both delete and upload: {sorted(overlap)}")

    return plan


def _describe_upload(variant: CanonicalVariant) -> str:
    size = variant.sizes[0] if variant.sizes else 'n/a'
    return f"size: {size}, gender: {variant.gender or 'n/a'}, ageGroup: {variant.age_group or 'n/a'}"


async def run_sync_job(
    client: Optional[MerchantClient],
    cache: VariantCache,
    merchant_id: str,
    build: Callable[[], VariantBatch],
    options: MappingOptions,
    emitter: SyncEventEmitter,
    cancel_check: Optional[Callable[[], bool]] = None,
    dry_run: bool = False
) -> RunReport:
    """
    Run one synchronization pass.

    Args:
        client: Catalog client (may be None in dry-run)
        cache: Variant cache store
        merchant_id: Merchant Center account id
        build: Produces the variant batch (called after the cache is loaded)
        options: Mapping options (channel/language/country for delete keys)
        emitter: SyncEventEmitter for status/progress
        cancel_check: Returns True once a stop has been requested
        dry_run: Log intended operations without remote calls or cache writes

    Returns:
        RunReport with counts, last phase and failed items
    """
    report = RunReport(dry_run=dry_run)

    def is_cancelled() -> bool:
        return bool(cancel_check and cancel_check())

    await emitter.emit_status("running")

    # LOAD_CACHE
    report.phase = SyncPhase.LOAD_CACHE
    cached = cache.load_all()
    await emitter.emit_log("INFO", f"Loaded {len(cached)} cached variant records")

    # BUILD_VARIANTS
    report.phase = SyncPhase.BUILD_VARIANTS
    batch = build()
    if not batch.variants and batch.products_total == 0:
        await emitter.emit_log("WARN", "No variants built; nothing to synchronize")
        report.phase = SyncPhase.DONE
        await emitter.emit_status("done")
        return report

    # DIFF
    report.phase = SyncPhase.DIFF
    plan = diff_variants(batch.variants, cached)
    report.skipped_unchanged = plan.unchanged
    if batch.is_partial and plan.stale_offer_ids:
        await emitter.emit_log(
            "WARN",
            f"Feed limited to {batch.products_selected}/{batch.products_total} products; "
            f"skipping deletion of {len(plan.stale_offer_ids)} cached offers not in this batch"
        )
        plan.stale_offer_ids = []
    await emitter.emit_log(
        "INFO",
        f"Diff: {len(plan.uploads)} to upload, {plan.unchanged} unchanged, "
        f"{len(plan.stale_offer_ids)} stale"
    )

    total = len(plan.stale_offer_ids) + len(plan.uploads)
    done = 0

    async def progress(current: Dict[str, str]):
        await emitter.emit_progress(
            done,
            total,
            success=report.uploaded + report.deleted,
            failed=report.upload_failed + report.delete_failed,
            skipped=report.skipped_unchanged,
            current=current
        )

    # DELETE_STALE
    report.phase = SyncPhase.DELETE_STALE
    for offer_id in plan.stale_offer_ids:
        if is_cancelled():
            report.cancelled = True
            break

        rest_id = build_rest_id(offer_id, options.channel, options.content_language, options.target_country)
        if dry_run:
            logger.info(f"[dry-run] Would delete stale product {rest_id}")
            report.deleted += 1
        else:
            try:
                await client.delete_product(merchant_id, rest_id)
                cache.delete(offer_id)
                report.deleted += 1
                logger.info(f"Deleted stale product {offer_id}")
            except Exception as e:
                report.record_failure(offer_id, "delete", e)
                logger.error(f"Failed to delete stale product {offer_id}: {e}")

        done += 1
        await progress({"offer_id": offer_id, "operation": "delete"})

    # UPLOAD_CHANGED
    if not report.cancelled:
        report.phase = SyncPhase.UPLOAD_CHANGED
        for item in plan.uploads:
            if is_cancelled():
                report.cancelled = True
                break

            variant = item.variant
            if dry_run:
                logger.info(f"[dry-run] Would upload product {variant.offer_id}")
                report.uploaded += 1
            else:
                try:
                    await client.insert_product(merchant_id, variant_to_request(variant))
                    cache.upsert(CachedVariantRecord(
                        offer_id=variant.offer_id,
                        item_group_id=variant.item_group_id,
                        hash=item.hash,
                        updated_at=datetime.now(timezone.utc),
                    ))
                    report.uploaded += 1
                    logger.info(f"Uploaded product {variant.offer_id} ({_describe_upload(variant)})")
                except Exception as e:
                    report.record_failure(variant.offer_id, "upload", e)
                    logger.error(f"Failed to upload product {variant.offer_id}: {e}")

            done += 1
            await progress({"offer_id": variant.offer_id, "operation": "upload"})

    if report.cancelled:
        await emitter.emit_log("WARN", f"Stop requested; halted during {report.phase.value}")
        await emitter.emit_status("cancelled")
    else:
        report.phase = SyncPhase.DONE
        await emitter.emit_status("done")

    await emitter.emit_log("INFO", report.summary())
    return report
