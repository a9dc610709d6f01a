from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
import logging

from tourdesk.db.session import get_db
from tourdesk.models.destination import Destination
from tourdesk.services import reservations

router = APIRouter()
logger = logging.getLogger(__name__)

class ApprovalBody(BaseModel):
    accepted: bool
    terms_accepted: bool

@router.get("/approve/{token}")
def approval_status(token: str, db: Session = Depends(get_db)):
    """Public approval page data; once approved the link never expires."""
    c = reservations.client_by_token(db, token)
    expired = reservations.token_expired(c)
    dest = db.get(Destination, c.destination_id) if c.destination_id else None
    client = reservations.serialize_client(c)
    client["children"] = [reservations.serialize_child(ch) for ch in reservations.children_of(db, c.id)]
    client["destination_name"] = dest.name if dest else None
    return {
        "client": client,
        "valid": not expired,
        "expired": expired,
        "already_approved": c.approval_status == "approved",
    }

@router.post("/approve/{token}")
def approve(token: str, payload: ApprovalBody, db: Session = Depends(get_db)):
    if not payload.accepted or not payload.terms_accepted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Approval must be accepted with terms and conditions")
    c = reservations.client_by_token(db, token)
    if reservations.token_expired(c):
        if c.approval_status != "expired":
            c.approval_status = "expired"
            db.commit()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Approval token has expired")
    if c.approval_status != "approved":
        c.approval_status = "approved"
        c.approval_date = datetime.utcnow()
        db.commit()
        db.refresh(c)
        logger.info("Client %s approved the trip", c.id)
    dest = db.get(Destination, c.destination_id) if c.destination_id else None
    return {
        "success": True,
        "client": reservations.serialize_client(c),
        "seat_selection_url": f"/seat-selection/{token}" if dest and dest.bus_id else None,
    }

@router.get("/thank-you/{token}")
def thank_you(token: str, db: Session = Depends(get_db)):
    c = reservations.client_by_token(db, token)
    dest = db.get(Destination, c.destination_id) if c.destination_id else None
    return {
        "client_name": c.full_name,
        "destination_name": dest.name if dest else None,
        "whatsapp_group_link": dest.whatsapp_group_link if dest else None,
    }
