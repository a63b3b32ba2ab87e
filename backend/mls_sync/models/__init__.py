from mls_sync.models.property import (
    Property,
    PropertyFeature,
    PropertyImage,
    PropertyStatus,
)
from mls_sync.models.sync_log import SyncLog, SyncStatus

__all__ = [
    "Property",
    "PropertyImage",
    "PropertyFeature",
    "PropertyStatus",
    "SyncLog",
    "SyncStatus",
]
