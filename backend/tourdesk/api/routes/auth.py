from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
import logging

from tourdesk.core.security import create_access_token, get_password_hash, verify_password
from tourdesk.core.config import settings
from tourdesk.schemas.auth import Token, UserRegister, AgentOut, AgentLogin
from tourdesk.db.session import get_db
from tourdesk.api.deps import get_current_identity
from tourdesk.models.user import User

router = APIRouter()
logger = logging.getLogger(__name__)

def _authenticate(db: Session, email: str, password: str) -> User:
    """Existing accounts only; 401 for unknown email or bad password, 403 when blocked."""
    user = db.query(User).filter(User.email == email.lower().strip()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is blocked")
    if not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect credentials")
    return user

def _token_for(user: User) -> dict:
    access_token = create_access_token(subject=user.email, roles=[user.role], full_name=user.full_name)
    return {"access_token": access_token, "token_type": "bearer", "role": user.role, "full_name": user.full_name}

def role_for_email(email: str) -> str:
    if email in settings.vadmin_emails:
        return "vadmin"
    if email in settings.admin_emails:
        return "admin"
    return "user"

@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    return _token_for(_authenticate(db, form_data.username, form_data.password))

@router.post("/login-json", response_model=Token)
def login_json(payload: AgentLogin, db: Session = Depends(get_db)):
    return _token_for(_authenticate(db, payload.email, payload.password))

@router.post("/register", response_model=AgentOut)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    user = User(email=email, full_name=payload.full_name, hashed_password=get_password_hash(payload.password), role=role_for_email(email), is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered %s as %s", user.email, user.role)
    return user

@router.get("/me", response_model=AgentOut)
def me(db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
