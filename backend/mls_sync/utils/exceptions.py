"""Domain exceptions for the MLS sync service."""


class MLSSyncError(Exception):
    """Base exception for the MLS sync service."""


class MLSAPIError(MLSSyncError):
    """Raised when the MLS feed returns an error or is unreachable."""


class SyncLogNotFoundError(MLSSyncError):
    """Raised when a sync log row cannot be found."""
