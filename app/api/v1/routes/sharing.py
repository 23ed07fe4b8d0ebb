"""
Location Sharing Routes

Start/stop live location sharing with emergency contacts, read its
status and send an SOS.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.v1.deps import get_registry
from app.features.tracking import (
    NoEmergencyContactsError,
    NoKnownPositionError,
    PersistenceError,
    SessionRegistry,
)
from app.features.tracking.schemas import (
    ShareLinkResponse,
    SharingStatus,
    SosRequest,
    SosResponse,
    TransitionResult,
)
from app.features.tracking.sharing import DEFAULT_SOS_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/accounts/{account_id}/sharing/start", response_model=TransitionResult)
async def start_sharing(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    try:
        session, started = await registry.start_sharing(account_id)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return TransitionResult(changed=started, state=session.state, last_error=session.last_error)


@router.post("/accounts/{account_id}/sharing/stop", response_model=TransitionResult)
async def stop_sharing(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.sharing(account_id)
    stopped = await session.stop()
    return TransitionResult(changed=stopped, state=session.state, last_error=session.last_error)


@router.get("/accounts/{account_id}/sharing", response_model=SharingStatus)
async def get_sharing_status(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Sharing state, last broadcast position and last detected anomaly."""
    return SharingStatus.from_snapshot(registry.sharing(account_id).snapshot())


@router.get("/accounts/{account_id}/sharing/link", response_model=ShareLinkResponse)
async def get_share_link(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Map link to the current position."""
    link = registry.sharing(account_id).generate_share_link()
    if link is None:
        raise HTTPException(status_code=409, detail="Unable to determine current location")
    return ShareLinkResponse(share_link=link)


@router.post("/accounts/{account_id}/sos", response_model=SosResponse)
async def send_sos(
    account_id: str,
    request: SosRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Send an SOS with the current position to every emergency contact."""
    session = registry.sharing(account_id)
    try:
        report = await session.send_emergency_sos(request.message or DEFAULT_SOS_MESSAGE)
    except (NoKnownPositionError, NoEmergencyContactsError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if report.delivered == 0:
        raise HTTPException(status_code=502, detail=session.last_error or "SOS could not be delivered")

    return SosResponse(
        sms_sent=report.sms_sent,
        emails_sent=report.emails_sent,
        delivered=report.delivered,
        failures=report.failures,
    )
