import time
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourdesk.core.config import settings
from tourdesk.db.session import get_db
from tourdesk.schemas.seats import SeatSelectionBody
from tourdesk.services import reservations

router = APIRouter()

# In-memory throttle store { token: last_ts }
_last_submit: dict[str, float] = {}

@router.get("/{token}")
def seat_selection_context(token: str, db: Session = Depends(get_db)):
    return reservations.seat_selection_context(db, token)

@router.post("/{token}")
def submit_seat_selection(token: str, payload: SeatSelectionBody, db: Session = Depends(get_db)):
    """Reserve the seats of the whole group in one go."""
    # Double-click protection
    now_ts = time.time()
    last = _last_submit.get(token)
    if last and (now_ts - last) < settings.selection_throttle_seconds:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Seat selection already in progress, wait a moment")
    _last_submit[token] = now_ts
    return reservations.submit_token_selection(db, token, payload.client_seat, payload.children_payload())
