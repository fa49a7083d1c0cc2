# app/api/routes/auth_routes.py
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import auth_rate_limit, limiter
from app.data.database import get_db
from app.models.auth_models import (
    AuthResponse,
    GoogleSignInRequest,
    LoginRequest,
    SignUpRequest,
    UserPublic,
)
from app.models.database_models.user import User
from app.services.auth_services import (
    authenticate_user,
    clear_session_cookie,
    federated_sign_in,
    get_current_user_from_cookie,
    set_session_cookie,
    sign_up,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_rate_limit)
async def register(
    user_data: SignUpRequest, request: Request, response: Response, db: AsyncSession = Depends(get_db)
):
    """Register a new user and start a session for them."""
    user = await sign_up(db, user_data.display_name, user_data.email, user_data.password)
    set_session_cookie(response, user)
    return AuthResponse(message="User registered successfully", user=UserPublic.model_validate(user))


@router.post("/sign-in", response_model=AuthResponse)
@limiter.limit(auth_rate_limit)
async def login(
    login_data: LoginRequest, request: Request, response: Response, db: AsyncSession = Depends(get_db)
):
    """Login a user and set the access token as an HTTP-only cookie."""
    user = await authenticate_user(db, login_data.email, login_data.password)
    set_session_cookie(response, user)
    logger.info(f"User {user.id} signed in")
    return AuthResponse(message="Logged in successfully", user=UserPublic.model_validate(user))


@router.post("/google", response_model=AuthResponse)
@limiter.limit(auth_rate_limit)
async def google_login(
    sign_in_data: GoogleSignInRequest, request: Request, response: Response, db: AsyncSession = Depends(get_db)
):
    """Sign in with a Google ID token, creating the account on first use."""
    user = await federated_sign_in(db, sign_in_data.credential)
    set_session_cookie(response, user)
    logger.info(f"User {user.id} signed in with Google")
    return AuthResponse(message="Logged in successfully", user=UserPublic.model_validate(user))


@router.post("/sign-out")
async def logout(response: Response):
    """Logout a user (delete the cookie)."""
    clear_session_cookie(response)
    return {"message": "Successfully logged out", "success": True}


@router.get("/me", response_model=UserPublic)
async def check_auth(user: User = Depends(get_current_user_from_cookie)):
    """Return the user the current session belongs to."""
    return user
