"""
Emergency Contact Routes
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.api.v1.deps import get_registry
from app.features.tracking import PersistenceError, SessionRegistry
from app.features.tracking.schemas import ContactCreate, ContactOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/accounts/{account_id}/contacts", response_model=List[ContactOut])
async def list_contacts(account_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Emergency contacts, primary contact first."""
    try:
        contacts = await registry.list_contacts(account_id)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [ContactOut.from_contact(c) for c in contacts]


@router.post("/accounts/{account_id}/contacts", response_model=ContactOut, status_code=201)
async def add_contact(
    account_id: str,
    request: ContactCreate,
    registry: SessionRegistry = Depends(get_registry),
):
    contact = request.to_contact(account_id)
    if not contact.has_phone and not contact.has_email:
        raise HTTPException(status_code=400, detail="Contact needs a phone number or an email")
    try:
        await registry.add_contact(contact)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ContactOut.from_contact(contact)


@router.delete("/accounts/{account_id}/contacts/{contact_id}", status_code=204)
async def remove_contact(
    account_id: str,
    contact_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    try:
        removed = await registry.remove_contact(account_id, contact_id)
    except PersistenceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail="Contact not found")
    return Response(status_code=204)
