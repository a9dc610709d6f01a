import logging
from tourdesk.db.session import engine, SessionLocal
from tourdesk.models import bus, child, client, destination, discount_approval, notification, seat_reservation, user  # noqa: F401
from tourdesk.models.base import Base
from tourdesk.models.bus import Bus
from tourdesk.models.user import User
from tourdesk.core.config import settings
from tourdesk.core.security import get_password_hash

logger = logging.getLogger(__name__)

# The agency's fleet; names and sizes map onto the fixed seat layouts
REFERENCE_BUSES = [
    {"name": "DD 64 G7", "type": "DD 64", "total_seats": 64, "description": "Double decker, 48 seats upstairs and 16 below"},
    {"name": "Executivo 46", "type": "Executivo", "total_seats": 46, "description": "Executive coach"},
    {"name": "Gráfico 42", "type": "Gráfico", "total_seats": 42, "description": "Graphic coach"},
    {"name": "Leito 44", "type": "LD 44", "total_seats": 44, "description": "Long-distance sleeper"},
]

def create_tables():
    Base.metadata.create_all(bind=engine)

def _ensure_user(db, email: str, password: str, full_name: str, role: str):
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return existing
    u = User(email=email, full_name=full_name, hashed_password=get_password_hash(password), role=role, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    logger.info("Seeded %s user %s", role, email)
    return u

def seed_demo_data():
    """Idempotent dev seed: one admin, one vadmin and the reference buses."""
    db = SessionLocal()
    try:
        _ensure_user(
            db,
            (settings.seed_admin_email or "admin@example.com").lower(),
            settings.seed_admin_password or "Admin1234!",
            "Admin",
            "admin",
        )
        _ensure_user(
            db,
            (settings.seed_vadmin_email or "vadmin@example.com").lower(),
            settings.seed_vadmin_password or "Vadmin1234!",
            "Supervisor",
            "vadmin",
        )
        for row in REFERENCE_BUSES:
            if not db.query(Bus).filter(Bus.name == row["name"]).first():
                db.add(Bus(**row, is_active=True))
        db.commit()
    finally:
        db.close()
