from datetime import date, datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_
from tourdesk.db.session import SessionLocal
from tourdesk.core.config import settings
from tourdesk.models.client import Client
from tourdesk.models.destination import Destination
import asyncio
import logging

logger = logging.getLogger(__name__)

MAX_BATCH = 200

def expire_pending_tokens(db: Session, now: datetime) -> int:
    """Pending approval links past their deadline become 'expired'. Approved ones never expire."""
    due = (
        db.query(Client)
        .filter(and_(
            Client.approval_status == "pending",
            Client.approval_expires_at.isnot(None),
            Client.approval_expires_at < now,
        ))
        .limit(MAX_BATCH)
        .all()
    )
    for c in due:
        c.approval_status = "expired"
    return len(due)

def archive_finished_destinations(db: Session, today: date) -> int:
    done = (
        db.query(Destination)
        .filter(and_(
            Destination.is_active == True,  # noqa: E712
            Destination.travel_end.isnot(None),
            Destination.travel_end < today,
        ))
        .limit(MAX_BATCH)
        .all()
    )
    for d in done:
        d.is_active = False
    return len(done)

def run_once(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.utcnow()
    expired = expire_pending_tokens(db, now)
    archived = archive_finished_destinations(db, now.date())
    db.commit()
    if expired or archived:
        logger.info("Housekeeping: %d tokens expired, %d destinations archived", expired, archived)
    return {"expired_tokens": expired, "archived_destinations": archived}

async def housekeeping_loop():
    await asyncio.sleep(3)
    while True:
        db = SessionLocal()
        try:
            run_once(db)
        except Exception:
            logger.exception("Housekeeping pass failed")
            db.rollback()
        finally:
            db.close()
        await asyncio.sleep(settings.housekeeping_interval_seconds)
