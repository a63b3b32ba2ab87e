"""Reconcile the MLS feed against the local properties table."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from mls_sync.config import settings
from mls_sync.models.sync_log import SyncLog, SyncStatus
from mls_sync.schemas.sync import SyncResult
from mls_sync.services import listing_mapper
from mls_sync.services.mls_client import MLSClient
from mls_sync.services.property_repository import PropertyRepository

logger = logging.getLogger(__name__)

SYNC_TYPE_FULL = "full"


async def _reconcile_listing(
    repo: PropertyRepository,
    mls_listing: dict[str, Any],
    result: SyncResult,
) -> None:
    result.records_processed += 1
    property_data = listing_mapper.transform_listing(mls_listing)
    mls_number = property_data["mls_number"]
    if not mls_number:
        logger.warning("Skipping MLS listing without an MLS number")
        return

    existing = await repo.find_property_by_mls_number(mls_number)
    if existing is not None:
        await repo.update_property(existing.id, property_data)
        result.records_updated += 1
        return

    property_id = await repo.insert_property(property_data)
    await repo.insert_images(listing_mapper.transform_images(mls_listing, property_id))
    await repo.insert_features(
        listing_mapper.transform_features(mls_listing, property_id)
    )
    result.records_added += 1


async def _reconcile_pages(
    repo: PropertyRepository,
    client: MLSClient,
    limit: int,
    status: str,
    result: SyncResult,
) -> None:
    page = 1
    while True:
        response = await client.fetch_listings(page=page, limit=limit, status=status)
        listings = response.listings or []
        for mls_listing in listings:
            await _reconcile_listing(repo, mls_listing, result)

        # A full page means there may be more
        if len(listings) != limit:
            break
        page += 1


async def sync_listings(
    db: Session,
    *,
    limit: int | None = None,
    status: str | None = None,
    client: MLSClient | None = None,
    repository: PropertyRepository | None = None,
) -> SyncResult:
    """
    Pull every page of MLS listings and upsert them by MLS number.

    1. Opens an ``in_progress`` sync log row
    2. Fetches pages until one comes back shorter than ``limit``
    3. Updates properties that already exist, inserts the rest together
       with their images and features
    4. Closes the sync log as ``success``, or as ``error`` with the counts
       so far before re-raising

    Rows committed before a failure stay committed. Runs are not
    serialized against each other, so callers must not sync concurrently.
    """
    repo = repository or PropertyRepository(db)
    if not limit or limit < 1:
        limit = settings.mls_default_page_size
    status = status or settings.mls_default_status

    sync_log_id = await repo.start_sync_log(SYNC_TYPE_FULL)
    result = SyncResult()
    logger.info("MLS sync %s started (limit=%s, status=%s)", sync_log_id, limit, status)

    try:
        if client is None:
            async with MLSClient() as mls_client:
                await _reconcile_pages(repo, mls_client, limit, status, result)
        else:
            await _reconcile_pages(repo, client, limit, status, result)
    except Exception as e:
        logger.exception(
            "MLS sync %s failed after %d records", sync_log_id, result.records_processed
        )
        await repo.complete_sync_log(
            sync_log_id, SyncStatus.ERROR, result.counts(), error_message=str(e)
        )
        raise

    await repo.complete_sync_log(sync_log_id, SyncStatus.SUCCESS, result.counts())
    logger.info(
        "MLS sync %s complete: processed=%d added=%d updated=%d",
        sync_log_id,
        result.records_processed,
        result.records_added,
        result.records_updated,
    )
    return result


def list_sync_logs(db: Session, limit: int = 10) -> list[SyncLog]:
    """Most recent sync runs, newest first."""
    return PropertyRepository(db).list_sync_logs(limit)
