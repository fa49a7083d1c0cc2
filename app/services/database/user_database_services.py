# app/services/database/user_database_services.py
import logging
from typing import Optional

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, StoreUnavailable
from app.models.database_models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    try:
        result = await db.execute(select(User).filter(User.id == user_id))
    except SQLAlchemyError as e:
        logger.exception(f"Failed to load user {user_id}")
        raise StoreUnavailable() from e
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    try:
        result = await db.execute(select(User).filter(User.email == normalize_email(email)))
    except SQLAlchemyError as e:
        logger.exception("Failed to look up user by email")
        raise StoreUnavailable() from e
    return result.scalars().first()


async def create_user(
    db: AsyncSession,
    display_name: str,
    email: str,
    hashed_password: Optional[bytes] = None,
    avatar_url: Optional[str] = None,
) -> User:
    email = normalize_email(email)
    try:
        result = await db.execute(select(exists().where(User.email == email)))
        if result.scalar():
            raise Conflict("Email already registered")

        db_user = User(
            display_name=display_name,
            email=email,
            hashed_password=hashed_password,
            avatar_url=avatar_url,
        )
        db.add(db_user)
        await db.commit()
        await db.refresh(db_user)
    except IntegrityError as e:
        # Lost a race against a concurrent sign-up with the same email
        await db.rollback()
        raise Conflict("Email already registered") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to create user")
        raise StoreUnavailable() from e

    logger.info(f"Created user {db_user.id}")
    return db_user


async def get_or_create_user(
    db: AsyncSession, email: str, display_name: str, avatar_url: Optional[str] = None
) -> User:
    """
    Returns the user registered under ``email``, creating it on first sight.

    Used by federated sign-in: an existing account (password or federated)
    with the same email is reused as-is, so repeated sign-ins always resolve
    to the same identifier.
    """
    user = await get_user_by_email(db, email)
    if user:
        return user
    try:
        return await create_user(db, display_name, email, avatar_url=avatar_url)
    except Conflict:
        user = await get_user_by_email(db, email)
        if user is None:
            raise
        return user
