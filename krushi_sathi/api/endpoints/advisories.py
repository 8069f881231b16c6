from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from krushi_sathi.db.persistence import AdvisoryStore, get_store
from krushi_sathi.models.advisory import (
    AdvisoryRecord, ListAdvisoriesResponse, SaveAdvisoryRequest, SaveAdvisoryResponse,
)
from krushi_sathi.models.common import ErrorResponse
from datetime import datetime, timezone
import logging
import uuid

router = APIRouter()
logger = logging.getLogger(__name__)

error_responses = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
    503: {"model": ErrorResponse, "description": "Database not configured"},
}


@router.post("/advisories", status_code=201, response_model=SaveAdvisoryResponse, responses=error_responses)
async def save_advisory(request: SaveAdvisoryRequest, store: AdvisoryStore = Depends(get_store)):
    """Persist an advisory the user chose to save. Records are never updated."""
    record = AdvisoryRecord(
        **request.advisory.model_dump(),
        id=str(uuid.uuid4()),
        userId=request.userId,
        createdAt=datetime.now(timezone.utc),
    )
    await run_in_threadpool(store.save, record)
    logger.info(f"Saved advisory {record.id} for user {request.userId}")
    return SaveAdvisoryResponse(id=record.id)


@router.get("/advisories", response_model=ListAdvisoriesResponse, responses=error_responses)
async def list_advisories(userId: str = Query(..., min_length=1), store: AdvisoryStore = Depends(get_store)):
    """Saved advisories for a user, newest first."""
    items = await run_in_threadpool(store.list, userId)
    logger.debug(f"Listed {len(items)} advisories for user {userId}")
    return ListAdvisoriesResponse(items=items)
