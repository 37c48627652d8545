"""
Authentication routes and dependencies
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Header, Depends, Cookie
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from database_models import User
from crud.user import UserRepository
from auth_utils import hash_password, verify_password, create_jwt, decode_jwt
from config.settings import settings
from utils.date_utils import to_utc_iso
from utils.responses import success_response
from utils.security_utils import validate_email, validate_password_strength

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])

SESSION_COOKIE = "auth_token"


# Request models
class SignupRequest(BaseModel):
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


def _session_response(user: User, status: int = 200):
    token = create_jwt(user.id)
    response = success_response(
        {"userId": user.id, "email": user.email, "token": token},
        status=status,
    )
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=settings.jwt_expiration_days * 86400,
    )
    return response


@auth_router.post("/signup")
async def signup(request: SignupRequest, db: AsyncSession = Depends(get_db)):
    """Create a new user account and open a session"""
    if not validate_email(request.email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    try:
        validate_password_strength(request.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user_repo = UserRepository(db)

    existing_user = await user_repo.get_user_by_email(request.email)
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = await user_repo.create_user({
        "email": request.email,
        "hashed_password": hash_password(request.password),
    })
    logger.info(f"New account created: {user.id}")
    return _session_response(user, status=201)


@auth_router.post("/login")
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login and get a session token"""
    user = await UserRepository(db).get_user_by_email(request.email)
    if not user or not verify_password(request.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="User account is inactive")

    return _session_response(user)


@auth_router.post("/logout")
async def logout():
    """Logout and clear auth token cookie"""
    response = success_response({"message": "Logged out successfully"})
    response.set_cookie(
        key=SESSION_COOKIE,
        value="",
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=0
    )
    return response


# Dependency for protected routes
async def get_current_user(
    auth_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency function to get current authenticated user.

    Authentication priority:
    1. Check auth_token cookie first (httpOnly cookie set by login/signup)
    2. Fallback to Authorization header (Bearer token) for the mobile app,
       also when the cookie is stale and no longer decodes
    3. Raise 401 if neither yields a valid session
    """
    tokens = []
    if auth_token:
        tokens.append(auth_token)
    if authorization and authorization.startswith("Bearer "):
        tokens.append(authorization[len("Bearer "):].strip())

    if not tokens:
        raise HTTPException(status_code=401, detail="Authentication required")

    payload = None
    for token in tokens:
        payload = decode_jwt(token)
        if payload:
            break
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await UserRepository(db).get_user_by_id(str(user_id))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="User account is inactive")

    return user


@auth_router.get("/me")
async def get_current_user_info(user: User = Depends(get_current_user)):
    """Get current user information from the session"""
    return success_response({
        "userId": user.id,
        "email": user.email,
        "isActive": user.is_active,
        "createdAt": to_utc_iso(user.created_at),
    })
