# rentals/api/routers/auth.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.api.dependencies import CurrentUser
from rentals.core.roles import Role, SELF_ASSIGNABLE_ROLES
from rentals.core.security import (
    create_access_token,
    create_refresh_token,
    is_strong_password,
    verify_password,
    verify_refresh_token,
)
from rentals.db import crud_users
from rentals.db.session import get_db
from rentals.schemas.auth import RefreshRequest, Token
from rentals.schemas.user import UserCreate, UserLogin, UserOut

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


async def _issue_tokens(db: AsyncSession, user, message: str) -> Dict[str, Any]:
    access = create_access_token(user.id, user.role)
    refresh = create_refresh_token(user.id, user.role)
    await crud_users.save_refresh_token(db, user.id, refresh)
    return {
        "message": message,
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    if not is_strong_password(payload.password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Password must be at least 8 characters and include uppercase, "
                "lowercase, number and special character"
            ),
        )

    existing = await crud_users.get_user_by_email(db, payload.email)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    role = payload.role if payload.role in {r.value for r in SELF_ASSIGNABLE_ROLES} else Role.GUEST.value

    user = await crud_users.create_user(
        db=db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        phone=payload.phone,
        role=role,
    )
    logger.info("registered user %s as %s", user.id, user.role)
    return await _issue_tokens(db, user, "User created successfully")


@router.post("/login", response_model=Token)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await crud_users.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return await _issue_tokens(db, user, "Login Successful")


@router.post("/refresh", response_model=Token)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    token = body.token
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing token")

    try:
        payload = verify_refresh_token(token)
        uid = int(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    if not await crud_users.is_refresh_token_active(db, token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token has been revoked",
        )

    user = await crud_users.get_user(db, uid)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return await _issue_tokens(db, user, "Token refreshed")


@router.post("/logout")
async def logout(
    body: Optional[RefreshRequest] = Body(None),
    db: AsyncSession = Depends(get_db),
):
    token = body.token if body else None
    if token:
        await crud_users.revoke_refresh_token(db, token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def me(current_user: CurrentUser):
    return {"user": UserOut.model_validate(current_user)}


@router.get("/check-email/{email}")
async def check_email(email: str, db: AsyncSession = Depends(get_db)):
    user = await crud_users.get_user_by_email(db, email)
    return {"exists": user is not None}
