"""
Location Routes

The device pushes its location permission and raw GPS samples here.
Live sessions of the account read the latest sample on their own schedule.
"""

import logging

from fastapi import APIRouter, Depends

from app.api.v1.deps import get_registry
from app.features.tracking import PushLocationProvider, SessionRegistry
from app.features.tracking.schemas import AuthorizationUpdate, LocationSample, ProviderStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def _status(provider: PushLocationProvider) -> ProviderStatus:
    return ProviderStatus(
        authorization=provider.authorization_status(),
        permission_requested=provider.permission_requested,
        updates_requested=provider.is_updating,
    )


@router.get("/accounts/{account_id}/location", response_model=ProviderStatus)
async def get_location_status(
    account_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    """Whether the device should ask for permission and keep sending samples."""
    return _status(registry.provider(account_id))


@router.post("/accounts/{account_id}/location", response_model=ProviderStatus)
async def push_location(
    account_id: str,
    sample: LocationSample,
    registry: SessionRegistry = Depends(get_registry),
):
    """Record the newest GPS sample of the device."""
    provider = registry.provider(account_id)
    provider.push(sample.to_point())
    return _status(provider)


@router.put("/accounts/{account_id}/location/authorization", response_model=ProviderStatus)
async def set_authorization(
    account_id: str,
    update: AuthorizationUpdate,
    registry: SessionRegistry = Depends(get_registry),
):
    """Report the location permission granted on the device."""
    provider = registry.provider(account_id)
    provider.set_authorization(update.status)
    return _status(provider)
