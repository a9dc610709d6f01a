from typing import List, Tuple
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt

from tourdesk.core.config import settings

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

ADMIN_ROLES = ("admin", "vadmin")

def _decode(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload

def _roles(payload: dict) -> List[str]:
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    return roles

def get_current_roles(token: str = Depends(oauth2_scheme)) -> List[str]:
    return _roles(_decode(token))

def require_roles(*allowed: str):
    def checker(roles: List[str] = Depends(get_current_roles)):
        if not any(r in roles for r in allowed):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return checker

def get_current_identity(token: str = Depends(oauth2_scheme)) -> Tuple[str, List[str]]:
    """Return (email, roles) from the JWT token."""
    payload = _decode(token)
    return payload["sub"].lower(), _roles(payload)

def get_current_name(token: str = Depends(oauth2_scheme)) -> str:
    """Display name carried in the token, falling back to the email."""
    payload = _decode(token)
    return payload.get("name") or payload["sub"]

require_admin = require_roles(*ADMIN_ROLES)
require_vadmin = require_roles("vadmin")
