"""Data access for the MLS reconciler.

The reconciler only talks to the store through ``PropertyRepository`` so it
does not depend on how the session is driven. Every write commits on its own;
a failed write rolls the session back (leaving it usable) and re-raises.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from mls_sync.models.property import Property, PropertyFeature, PropertyImage
from mls_sync.models.sync_log import SyncLog, SyncStatus
from mls_sync.services.listing_mapper import utcnow
from mls_sync.utils.exceptions import SyncLogNotFoundError

logger = logging.getLogger(__name__)

# Fields the reconciler may overwrite on an existing row.
MUTABLE_PROPERTY_FIELDS = (
    "title",
    "description",
    "price",
    "address",
    "city",
    "state",
    "zip_code",
    "latitude",
    "longitude",
    "bedrooms",
    "bathrooms",
    "square_feet",
    "lot_size",
    "property_type",
    "status",
    "year_built",
    "garage",
    "parking_spaces",
    "property_tax",
    "hoa_fee",
    "mls_status",
    "listing_date",
    "last_modified",
)


class PropertyRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    # -- properties ------------------------------------------------------------

    async def find_property_by_mls_number(self, mls_number: str) -> Property | None:
        return self.db.scalars(
            select(Property).where(Property.mls_number == mls_number)
        ).first()

    async def insert_property(self, data: dict[str, Any]) -> int:
        prop = Property(**data)
        self.db.add(prop)
        self._commit()
        return prop.id

    async def update_property(self, property_id: int, data: dict[str, Any]) -> None:
        prop = self.db.get(Property, property_id)
        if prop is None:
            raise LookupError(f"Property {property_id} not found")
        for field in MUTABLE_PROPERTY_FIELDS:
            if field in data:
                setattr(prop, field, data[field])
        prop.updated_at = utcnow()
        self._commit()

    async def insert_images(self, images: list[dict[str, Any]]) -> None:
        """Insert all images for one property in a single transaction."""
        if not images:
            return
        self.db.add_all(PropertyImage(**img) for img in images)
        self._commit()

    async def insert_features(self, features: list[dict[str, Any]]) -> None:
        """Insert all features for one property in a single transaction."""
        if not features:
            return
        self.db.add_all(PropertyFeature(**feat) for feat in features)
        self._commit()

    # -- sync log --------------------------------------------------------------

    async def start_sync_log(self, sync_type: str) -> int:
        sync_log = SyncLog(sync_type=sync_type, status=SyncStatus.IN_PROGRESS.value)
        self.db.add(sync_log)
        self._commit()
        return sync_log.id

    async def complete_sync_log(
        self,
        sync_log_id: int,
        status: SyncStatus,
        stats: dict[str, int],
        error_message: str | None = None,
    ) -> None:
        sync_log = self.db.get(SyncLog, sync_log_id)
        if sync_log is None:
            raise SyncLogNotFoundError(f"Sync log {sync_log_id} not found")
        sync_log.status = status.value
        sync_log.records_processed = stats.get("records_processed", 0)
        sync_log.records_added = stats.get("records_added", 0)
        sync_log.records_updated = stats.get("records_updated", 0)
        sync_log.records_deleted = stats.get("records_deleted", 0)
        sync_log.error_message = error_message
        sync_log.completed_at = utcnow()
        self._commit()

    def list_sync_logs(self, limit: int = 10) -> list[SyncLog]:
        return list(
            self.db.scalars(
                select(SyncLog)
                .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
                .limit(limit)
            )
        )

    # -- internals -------------------------------------------------------------

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception as e:
            logger.error("Database write failed, rolling back: %s", e)
            self.db.rollback()
            raise
