import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from needled.api.schemas import TokenPair, UserProfile
from needled.core.clock import utcnow
from needled.core.db import get_db_session
from needled.core.security import (
    TokenManager,
    get_current_user,
    get_token_manager,
    rate_limiter,
    verify_password,
)
from needled.models import AuthSession, User

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


async def issue_session(db: AsyncSession, user: User, token_manager: TokenManager) -> TokenPair:
    access = token_manager.create_access_token(subject=user.id)
    refresh_token, refresh_exp = token_manager.create_refresh_token(subject=user.id)
    db.add(
        AuthSession(
            user_id=user.id,
            refresh_token_hash=token_manager.hash_refresh_token(refresh_token),
            expires_at=refresh_exp.replace(tzinfo=None),
        )
    )
    await db.commit()
    return TokenPair(access_token=access, refresh_token=refresh_token, user=UserProfile.model_validate(user))


async def _find_session(db: AsyncSession, refresh_token: str, token_manager: TokenManager):
    stmt = select(AuthSession).where(
        AuthSession.refresh_token_hash == token_manager.hash_refresh_token(refresh_token)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


@router.post("/login", response_model=TokenPair, summary="Login")
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    token_manager: TokenManager = Depends(get_token_manager),
):
    rate_limiter.guard(request.client.host if request.client else "anonymous")

    stmt = select(User).where(func.lower(User.email) == payload.email.strip().lower())
    user = (await db.execute(stmt)).scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash or ""):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    logger.info("User %s logged in", user.id)
    return await issue_session(db, user, token_manager)


@router.post("/refresh", response_model=RefreshResponse, summary="Refresh access token")
async def refresh(
    refresh_token: str = Body(embed=True),
    db: AsyncSession = Depends(get_db_session),
    token_manager: TokenManager = Depends(get_token_manager),
):
    payload = token_manager.decode_token(refresh_token, expected_type="refresh")
    user_id = payload.get("sub")
    session = await _find_session(db, refresh_token, token_manager)
    if (
        not user_id
        or session is None
        or session.revoked
        or session.user_id != user_id
        or session.expires_at <= utcnow()
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token invalid")
    return RefreshResponse(access_token=token_manager.create_access_token(subject=user_id))


@router.post("/logout", summary="Logout")
async def logout(
    refresh_token: str = Body(embed=True),
    db: AsyncSession = Depends(get_db_session),
    token_manager: TokenManager = Depends(get_token_manager),
):
    session = await _find_session(db, refresh_token, token_manager)
    if session is not None and not session.revoked:
        session.revoked = True
        await db.commit()
    return {"ok": True}


@router.get("/session", response_model=UserProfile, summary="Current user")
async def current_session(user: User = Depends(get_current_user)):
    return user
