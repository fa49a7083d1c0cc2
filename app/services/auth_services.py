# app/services/auth_services.py
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import bcrypt
from email_validator import EmailNotValidError, validate_email
from fastapi import Depends, Request, Response
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import Unauthenticated, ValidationError
from app.data.database import get_db
from app.models.auth_models import PasswordValidationError, TokenData
from app.models.auth_models import ValidationError as FieldError
from app.models.database_models.user import User
from app.services.database.user_database_services import (
    create_user,
    get_or_create_user,
    get_user_by_email,
    get_user_by_id,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"
BCRYPT_MAX_PASSWORD_BYTES = 72


def verify_password(plain_password, hashed_password):
    # bcrypt refuses anything longer, and no stored hash can match it
    if len(plain_password.encode('utf-8')) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password)


def hash_password(password):
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())


def validate_password(password: str):
    errors = []
    if len(password) < 8:
        errors.append("8_characters_long")
    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        errors.append("max_72_bytes")
    if not any(char.isdigit() for char in password):
        errors.append("one_digit")
    if not any(char.isupper() for char in password):
        errors.append("one_uppercase")
    if not any(char.islower() for char in password):
        errors.append("one_lowercase")
    if not any(char in "!@#$%^&*()" for char in password):
        errors.append("one_special")

    if errors:
        raise PasswordValidationError(errors)

    return True


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def decode_access_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info(f"Access token rejected: {e}")
        raise Unauthenticated()
    if payload.get("type") != "access":
        raise Unauthenticated("Invalid token type")
    subject = payload.get("sub")
    try:
        return TokenData(user_id=int(subject))
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token payload")


def set_session_cookie(response: Response, user: User) -> str:
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": str(user.id)}, expires_delta=access_token_expires
    )
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=access_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        max_age=int(access_token_expires.total_seconds()),
        path="/",
    )
    return access_token


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        ACCESS_TOKEN_COOKIE,
        path="/",
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,
    )


def normalize_signup_email(email: str) -> str:
    try:
        return validate_email(email, check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise ValidationError(
            [FieldError(loc=["email"], msg=str(e), type="value_error.email").model_dump()]
        )


async def sign_up(db: AsyncSession, display_name: str, email: str, password: str) -> User:
    if not display_name or not display_name.strip():
        raise ValidationError(
            [FieldError(loc=["display_name"], msg="Display name is required", type="value_error.missing").model_dump()]
        )
    email = normalize_signup_email(email)
    try:
        validate_password(password)
    except PasswordValidationError as e:
        raise ValidationError(
            [
                FieldError(loc=["password"], msg=message, type="value_error.password").model_dump()
                for message in e.messages
            ]
        )

    return await create_user(db, display_name.strip(), email, hash_password(password))


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or user.hashed_password is None:
        logger.info("Sign-in failed: unknown email or account without password")
        raise Unauthenticated("Incorrect email or password")
    if not verify_password(password, user.hashed_password):
        logger.info(f"Sign-in failed for user {user.id}: wrong password")
        raise Unauthenticated("Incorrect email or password")
    return user


def verify_google_credential(credential: str) -> dict:
    """Verifies a Google ID token and returns its claims."""
    if not settings.GOOGLE_CLIENT_ID:
        raise Unauthenticated("Federated sign-in is not configured")
    try:
        claims = id_token.verify_oauth2_token(
            credential, google_requests.Request(), settings.GOOGLE_CLIENT_ID
        )
    except (ValueError, GoogleAuthError) as e:
        logger.info(f"Google credential rejected: {e}")
        raise Unauthenticated("Invalid Google credential")

    if not claims.get("email") or not claims.get("email_verified", False):
        raise Unauthenticated("Google account has no verified email")
    return claims


async def federated_sign_in(db: AsyncSession, credential: str) -> User:
    claims = verify_google_credential(credential)
    email = claims["email"]
    display_name = claims.get("name") or email.split("@", 1)[0]
    return await get_or_create_user(db, email, display_name, avatar_url=claims.get("picture"))


def _candidate_tokens(request: Request) -> List[str]:
    """Session tokens carried by the request, cookie first, then bearer header."""
    tokens = []
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if access_token:
        tokens.append(access_token)
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        tokens.append(token.strip())
    return tokens


async def get_current_user_from_cookie(
    request: Request, db: AsyncSession = Depends(get_db)
) -> User:
    tokens = _candidate_tokens(request)
    if not tokens:
        raise Unauthenticated("Missing access token")

    # A stale cookie must not shadow a valid bearer token
    error = None
    for access_token in tokens:
        try:
            token_data = decode_access_token(access_token)
        except Unauthenticated as e:
            error = e
            continue
        user = await get_user_by_id(db, token_data.user_id)
        if user:
            return user
        logger.info(f"Token subject {token_data.user_id} no longer exists")
        error = Unauthenticated("User not found")
    raise error

