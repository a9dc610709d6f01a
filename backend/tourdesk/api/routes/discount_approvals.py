from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
import logging

from tourdesk.api.deps import get_current_identity, get_current_name, require_admin, require_vadmin
from tourdesk.db.session import get_db
from tourdesk.models.discount_approval import DiscountApprovalRequest
from tourdesk.models.notification import Notification
from tourdesk.models.user import User
from tourdesk.services import reservations
from tourdesk.services.notification_ws import manager as ws_manager

router = APIRouter()
logger = logging.getLogger(__name__)

class DiscountRequestBody(BaseModel):
    client_id: int
    requested_discount_type: str = Field(..., pattern="^(3|5|custom)$")
    requested_discount_value: float = Field(..., gt=0, le=100)
    approval_notes: str | None = None

class ApproveBody(BaseModel):
    # Optional so that a missing value gets the explicit 400 message
    max_discount_percentage_allowed: float | None = Field(None, gt=0, le=100)
    approval_notes: str | None = None

class RejectBody(BaseModel):
    reason: str | None = None

def _request_dict(r: DiscountApprovalRequest) -> dict:
    return {
        "id": r.id,
        "client_id": r.client_id,
        "requested_discount_type": r.requested_discount_type,
        "requested_discount_value": float(r.requested_discount_value),
        "status": r.status,
        "requested_by_email": r.requested_by_email,
        "requested_by_name": r.requested_by_name,
        "decided_by_email": r.decided_by_email,
        "max_discount_percentage_allowed": float(r.max_discount_percentage_allowed) if r.max_discount_percentage_allowed is not None else None,
        "approval_notes": r.approval_notes,
        "rejection_reason": r.rejection_reason,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }

def _get_request(db: Session, request_id: int) -> DiscountApprovalRequest:
    r = db.get(DiscountApprovalRequest, request_id)
    if not r:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Discount approval request not found")
    return r

# Session work runs in the threadpool, the socket pushes stay on the loop

def _store_request(db: Session, payload: DiscountRequestBody, email: str, name: str) -> dict:
    client = reservations.get_client(db, payload.client_id)
    r = DiscountApprovalRequest(
        client_id=client.id,
        requested_discount_type=payload.requested_discount_type,
        requested_discount_value=payload.requested_discount_value,
        approval_notes=payload.approval_notes,
        requested_by_email=email,
        requested_by_name=name,
        status="pending",
    )
    db.add(r)
    msg = f"{name} requested a {payload.requested_discount_value:g}% discount for {client.full_name}"
    for vadmin in db.query(User).filter(User.role == "vadmin", User.is_active == True).all():  # noqa: E712
        db.add(Notification(user_email=vadmin.email, type="discount_approval_request", message=msg))
    db.commit()
    db.refresh(r)
    data = _request_dict(r)
    data["client_name"] = client.full_name
    return data

def _store_decision(db: Session, request_id: int, email: str, approve: bool, payload) -> dict:
    r = _get_request(db, request_id)
    if r.status != "pending":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request already decided")
    r.decided_by_email = email
    if approve:
        r.status = "approved"
        r.max_discount_percentage_allowed = payload.max_discount_percentage_allowed
        if payload.approval_notes:
            r.approval_notes = payload.approval_notes
        message = f"Discount approved up to {payload.max_discount_percentage_allowed:g}%"
    else:
        r.status = "rejected"
        r.rejection_reason = payload.reason
        message = f"Discount rejected: {payload.reason or 'no reason given'}"
    db.add(Notification(user_email=r.requested_by_email, type="discount_approval_decision", message=message))
    db.commit()
    db.refresh(r)
    return _request_dict(r)

async def _push_decision(data: dict):
    await ws_manager.send_to_user(data["requested_by_email"], {"type": "discount_approval_decision", "data": data})

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_request(
    payload: DiscountRequestBody,
    db: Session = Depends(get_db),
    identity=Depends(get_current_identity),
    name: str = Depends(get_current_name),
):
    email, _roles = identity
    data = await run_in_threadpool(_store_request, db, payload, email, name)
    sent = await ws_manager.broadcast_to_role("vadmin", {"type": "discount_approval_request", "data": data})
    logger.info("Discount request %s created by %s, pushed to %d vadmin socket(s)", data["id"], email, sent)
    return data

@router.get("/pending", dependencies=[Depends(require_vadmin)])
def pending_requests(db: Session = Depends(get_db)):
    rows = db.query(DiscountApprovalRequest).filter(DiscountApprovalRequest.status == "pending").order_by(DiscountApprovalRequest.created_at).all()
    return [_request_dict(r) for r in rows]

@router.get("/{request_id}", dependencies=[Depends(require_admin)])
def request_detail(request_id: int, db: Session = Depends(get_db)):
    return _request_dict(_get_request(db, request_id))

@router.patch("/{request_id}/approve", dependencies=[Depends(require_vadmin)])
async def approve_request(request_id: int, payload: ApproveBody, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    if not payload.max_discount_percentage_allowed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="max_discount_percentage_allowed is required")
    data = await run_in_threadpool(_store_decision, db, request_id, email, True, payload)
    await _push_decision(data)
    return data

@router.patch("/{request_id}/reject", dependencies=[Depends(require_vadmin)])
async def reject_request(request_id: int, payload: RejectBody, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    data = await run_in_threadpool(_store_decision, db, request_id, email, False, payload)
    await _push_decision(data)
    return data
