from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mls_sync.database import get_db
from mls_sync.schemas.sync import (
    MLSConfigResponse,
    SyncErrorResponse,
    SyncLogListResponse,
    SyncLogResponse,
    SyncRequest,
    SyncResponse,
    parse_positive_int,
)
from mls_sync.services import sync_service
from mls_sync.services.mls_client import MLSClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mls")

DEFAULT_STATUS_LIMIT = 10


@router.post(
    "/sync",
    response_model=SyncResponse,
    responses={500: {"model": SyncErrorResponse}},
)
async def trigger_sync(
    body: SyncRequest | None = None,
    db: Session = Depends(get_db),
) -> SyncResponse | JSONResponse:
    body = body or SyncRequest()
    logger.info("Starting MLS sync (limit=%s, status=%s)", body.limit, body.status)
    try:
        result = await sync_service.sync_listings(
            db, limit=body.limit, status=body.status
        )
    except Exception as e:
        logger.error("MLS sync error: %s", e)
        return JSONResponse(
            status_code=500,
            content=SyncErrorResponse(error=str(e)).model_dump(),
        )
    return SyncResponse(**result.counts())


@router.get("/sync/status", response_model=SyncLogListResponse)
def get_sync_status(
    limit: str | None = Query(None),
    db: Session = Depends(get_db),
) -> SyncLogListResponse:
    page_size = parse_positive_int(limit) or DEFAULT_STATUS_LIMIT
    logs = sync_service.list_sync_logs(db, page_size)
    return SyncLogListResponse(
        logs=[SyncLogResponse.model_validate(log) for log in logs]
    )


@router.get("/config", response_model=MLSConfigResponse)
def get_mls_config() -> MLSConfigResponse:
    client = MLSClient()
    return MLSConfigResponse(
        configured=client.is_configured,
        api_url=client.api_url,
        has_api_key=client.is_configured,
    )
