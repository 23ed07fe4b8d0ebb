"""
Hike Routes

Live hike tracking (start / pause / resume / stop / checkpoint) and
stored hike records.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.api.v1.deps import get_registry
from app.features.tracking import HikeRecord, PersistenceError, SessionRegistry, export_gpx
from app.features.tracking.hike import HikeSession
from app.features.tracking.schemas import (
    HikeLiveStatus,
    HikeRecordDetail,
    HikeRecordSummary,
    StartHikeRequest,
    TransitionResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _result(session: HikeSession, changed: bool) -> TransitionResult:
    return TransitionResult(changed=changed, state=session.state, last_error=session.last_error)


async def _load_record(registry: SessionRegistry, account_id: str, record_id: str) -> HikeRecord:
    try:
        record = await registry.record_store.load(record_id)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if record is None or record.account_id != account_id:
        raise HTTPException(status_code=404, detail="Hike record not found")
    return record


# === Live session ===

@router.post("/accounts/{account_id}/hike/start", response_model=TransitionResult)
async def start_hike(
    account_id: str,
    request: Optional[StartHikeRequest] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    """Start tracking a new hike. A no-op while a hike is already running."""
    request = request or StartHikeRequest()
    session, started = await registry.start_hike(
        account_id, trail_id=request.trail_id, trail_name=request.trail_name
    )
    return _result(session, started)


@router.post("/accounts/{account_id}/hike/pause", response_model=TransitionResult)
async def pause_hike(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.hike(account_id)
    return _result(session, await session.pause())


@router.post("/accounts/{account_id}/hike/resume", response_model=TransitionResult)
async def resume_hike(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.hike(account_id)
    return _result(session, await session.resume())


@router.post("/accounts/{account_id}/hike/stop", response_model=TransitionResult)
async def stop_hike(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Finish the hike and store its record."""
    session = registry.hike(account_id)
    return _result(session, await session.stop())


@router.post("/accounts/{account_id}/hike/checkpoint", response_model=TransitionResult)
async def checkpoint_hike(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    """
    Store the current record without changing the session.

    Also retries a save that failed when the hike was stopped.
    """
    session = registry.hike(account_id)
    if session.record is None:
        raise HTTPException(status_code=409, detail="No hike to save")
    saved = await session.save_current_record()
    if not saved:
        raise HTTPException(status_code=502, detail=session.last_error)
    return _result(session, True)


@router.get("/accounts/{account_id}/hike", response_model=HikeLiveStatus)
async def get_live_hike(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Live tracking screen: state, distance, speed, elapsed time."""
    return HikeLiveStatus.from_snapshot(registry.hike(account_id).snapshot())


# === Stored records ===

@router.get("/accounts/{account_id}/hikes", response_model=List[HikeRecordSummary])
async def list_hikes(
    account_id: str,
    trail_id: Optional[str] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    """Stored hikes of an account, newest first. Filter by trail with `trail_id`."""
    try:
        if trail_id:
            records = await registry.record_store.load_for_trail(account_id, trail_id)
        else:
            records = await registry.record_store.load_all(account_id)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [HikeRecordSummary.from_record(r) for r in records]


@router.get("/accounts/{account_id}/hikes/{record_id}", response_model=HikeRecordDetail)
async def get_hike(
    account_id: str,
    record_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    record = await _load_record(registry, account_id, record_id)
    return HikeRecordDetail.from_record(record)


@router.delete("/accounts/{account_id}/hikes/{record_id}", status_code=204)
async def delete_hike(
    account_id: str,
    record_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    record = await _load_record(registry, account_id, record_id)
    session = registry.hike(account_id)
    if not await session.delete_record(record):
        raise HTTPException(status_code=502, detail=session.last_error)
    return Response(status_code=204)


@router.get("/accounts/{account_id}/hikes/{record_id}/gpx")
async def download_hike_gpx(
    account_id: str,
    record_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    """Download the recorded track as a GPX file."""
    record = await _load_record(registry, account_id, record_id)
    return Response(
        content=export_gpx(record),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="hike-{record.id}.gpx"'},
    )
