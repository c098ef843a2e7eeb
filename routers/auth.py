"""
Authentication router for candidates and admins.
JWT sent as Bearer token; refresh token stored in DB (users.refresh_token) and cleared on logout.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session

from auth.security import (
    hash_password, verify_password,
    issue_access_token, new_refresh_token, user_id_from_token,
)
from database import crud
from database.database import get_db
from database.models import User, UserRole

_bearer = HTTPBearer(auto_error=False)


# ─── Schemas ───────────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=255)


class UserOut(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


class RefreshRequest(BaseModel):
    refresh_token: str


class RoleUpdate(BaseModel):
    role: UserRole


# ─── Auth dependencies ────────────────────────────────────────────────────────

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = db.query(User).filter(User.id == user_id, User.is_active == True).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def require_admin(current: User = Depends(get_current_user)) -> User:
    if not current.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current


# ─── Router ───────────────────────────────────────────────────────────────────

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(user: User, db: Session) -> LoginResponse:
    access_token = issue_access_token(user.id, user.role.value)
    refresh_token = new_refresh_token()
    user.refresh_token = refresh_token
    db.add(user)
    db.commit()
    db.refresh(user)
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserOut.model_validate(user),
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")
    return _issue_tokens(user, db)


@router.post("/register", response_model=LoginResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Self-service sign-up; always creates a student account."""
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        email=payload.email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        role=UserRole.STUDENT,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    crud.log_activity(db, user.id, "register", "user", user.id)
    return _issue_tokens(user, db)


@router.get("/me", response_model=UserOut)
def get_me(current: User = Depends(get_current_user)):
    return UserOut.model_validate(current)


@router.post("/refresh", response_model=LoginResponse)
def refresh_tokens(payload: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a valid refresh_token for a new access_token (and a rotated refresh_token)."""
    user = db.query(User).filter(
        User.refresh_token == payload.refresh_token,
        User.is_active == True,
    ).first()
    if not user or not user.refresh_token:
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
    return _issue_tokens(user, db)


@router.post("/logout")
def logout(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Clear refresh_token so the session is revoked server-side."""
    current.refresh_token = None
    db.add(current)
    db.commit()
    return {"detail": "Logged out"}


@router.get("/users", response_model=List[UserOut])
def list_users(_admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.patch("/users/{user_id}/role", response_model=UserOut)
def change_role(
    user_id: int,
    payload: RoleUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id and payload.role != UserRole.ADMIN:
        raise HTTPException(status_code=400, detail="Admins cannot demote themselves")
    user.role = payload.role
    db.commit()
    db.refresh(user)
    crud.log_activity(db, admin.id, "change_role", "user", user.id, payload.role.value)
    return user
