from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, Query, status
from sqlalchemy.orm import Session
from pydantic import BaseModel
from datetime import datetime
import asyncio
import json
import jwt
import logging

from tourdesk.db.session import get_db
from tourdesk.api.deps import ADMIN_ROLES, get_current_identity
from tourdesk.models.notification import Notification
from tourdesk.services.notification_ws import manager
from tourdesk.core.security import decode_access_token

router = APIRouter()
ws_router = APIRouter()
logger = logging.getLogger(__name__)

HEARTBEAT_SECONDS = 15 * 60
POLICY_VIOLATION = 1008

class NotificationOut(BaseModel):
    id: int
    type: str
    message: str
    created_at: datetime
    read: bool

    class Config:
        from_attributes = True

@router.get("/", response_model=list[NotificationOut])
def list_notifications(db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    return db.query(Notification).filter(Notification.user_email == email).order_by(Notification.created_at.desc()).limit(200).all()

@router.get("/unread-count", response_model=dict)
def unread_count(db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    count = db.query(Notification).filter(Notification.user_email == email, Notification.read == False).count()  # noqa: E712
    return {"unread": count}

@router.post("/{notif_id}/read")
def mark_notification(notif_id: int, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    n = db.query(Notification).filter(Notification.id == notif_id, Notification.user_email == email).first()
    if not n:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    n.read = True
    db.commit()
    return {"status": "ok"}

@router.post("/mark-all-read")
def mark_all_read(db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    updated = db.query(Notification).filter(Notification.user_email == email, Notification.read == False).update({Notification.read: True})  # noqa: E712
    db.commit()
    return {"status": "ok", "updated": updated}

def _admin_from_token(token: str | None) -> tuple[str, str] | None:
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        return None
    email = (payload.get("sub") or "").lower()
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    role = next((r for r in roles if r in ADMIN_ROLES), None)
    if not email or not role:
        return None
    return email, role

@ws_router.websocket("/ws")
async def websocket_notifications(websocket: WebSocket, token: str | None = Query(None)):
    """Admin push channel (?token=<jwt>).

    Messages: {"type": "connected"} on accept, "pong" for every client
    "ping", a server "ping" after 15 idle minutes, and the
    discount_approval_request / discount_approval_decision pushes.
    """
    who = _admin_from_token(token)
    if who is None:
        await websocket.close(code=POLICY_VIOLATION)
        return
    email, role = who
    await manager.connect(email, role, websocket)
    try:
        await websocket.send_text(json.dumps({"type": "connected", "message": "WebSocket connection established"}))
        while True:
            try:
                raw = await asyncio.wait_for(websocket.receive_text(), timeout=HEARTBEAT_SECONDS)
            except asyncio.TimeoutError:
                await websocket.send_text(json.dumps({"type": "ping"}))
                continue
            try:
                message = json.loads(raw)
            except ValueError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(email, websocket)
