"""
Admin login and the viewer identity handed to the dashboard routes.

There is a single admin account configured through the environment. The
viewer is resolved per request and passed explicitly; nothing here keeps
session state.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ADMIN_ANONYMOUS_READ,
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    ADMIN_PASSWORD_HASH,
    ALGORITHM,
    SECRET_KEY,
)

# Use pbkdf2_sha256 to avoid external bcrypt dependency issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Support providing a precomputed hash; otherwise hash the configured password
admin_password_hash = ADMIN_PASSWORD_HASH or pwd_context.hash(ADMIN_PASSWORD)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


@dataclass(frozen=True)
class Viewer:
    email: str
    role: str

    @property
    def user_id(self) -> str:
        return self.email


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def authenticate(email: str, password: str) -> Optional[Viewer]:
    if email.lower() != ADMIN_EMAIL.lower() or not verify_password(password, admin_password_hash):
        return None
    return Viewer(email=ADMIN_EMAIL, role="admin")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def get_viewer(authorization: Optional[str] = Header(None)) -> Optional[Viewer]:
    """The signed-in admin, or None when no token was sent."""
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    email: str = payload.get("sub")
    role: str = payload.get("role")
    if email != ADMIN_EMAIL or role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return Viewer(email=email, role=role)


def require_admin(viewer: Optional[Viewer] = Depends(get_viewer)) -> Viewer:
    if viewer is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return viewer


def allow_dashboard_read(viewer: Optional[Viewer] = Depends(get_viewer)) -> Optional[Viewer]:
    if viewer is None and not ADMIN_ANONYMOUS_READ:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return viewer
