# app/services/database/prompt_database_services.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Forbidden, NotFound, StoreUnavailable, ValidationError
from app.models.database_models.prompt import Prompt
from app.models.database_models.user import User
from app.models.prompt_models import PromptCreate, PromptUpdate
from app.services.database.user_database_services import get_user_by_id

logger = logging.getLogger(__name__)


def _clean_field(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Field '{name}' must be a non-empty string")
    return value.strip()


def _field_errors(e: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": [str(part) for part in err["loc"]], "msg": err["msg"], "type": err["type"]}
        for err in e.errors()
    ]


def parse_prompt_create(payload: Any) -> PromptCreate:
    if not isinstance(payload, dict):
        raise ValidationError("Prompt payload must be a JSON object")
    try:
        return PromptCreate.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(_field_errors(e)) from e


def _validate_update_fields(fields: Any) -> Dict[str, str]:
    if fields is None:
        return {}
    if not isinstance(fields, dict):
        raise ValidationError("Update payload must be a JSON object")
    try:
        update = PromptUpdate.model_validate(fields)
    except PydanticValidationError as e:
        raise ValidationError(_field_errors(e)) from e
    return {
        name: _clean_field(name, value)
        for name, value in update.model_dump(exclude_unset=True).items()
    }


async def create_prompt(db: AsyncSession, user_id: int, title: str, body: str, tool: str) -> Prompt:
    prompt = Prompt(
        user_id=user_id,
        title=_clean_field("title", title),
        body=_clean_field("body", body),
        tool=_clean_field("tool", tool),
    )
    try:
        db.add(prompt)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to create prompt for user {user_id}")
        raise StoreUnavailable() from e

    logger.info(f"User {user_id} created prompt {prompt.id}")
    return await get_prompt(db, prompt.id)


async def get_prompt(db: AsyncSession, prompt_id: int) -> Prompt:
    try:
        result = await db.execute(
            select(Prompt).filter(Prompt.id == prompt_id).execution_options(populate_existing=True)
        )
    except SQLAlchemyError as e:
        logger.exception(f"Failed to load prompt {prompt_id}")
        raise StoreUnavailable() from e
    prompt = result.scalars().first()
    if not prompt:
        raise NotFound("Prompt not found")
    return prompt


async def update_prompt(db: AsyncSession, prompt_id: int, requester_id: int, fields: Any) -> Prompt:
    """
    Applies a partial update to a prompt owned by ``requester_id``.

    Ownership is checked before the payload is looked at, so a non-owner is
    refused with Forbidden whatever they send.
    """
    prompt = await get_prompt(db, prompt_id)
    if prompt.user_id != requester_id:
        logger.warning(f"User {requester_id} tried to update prompt {prompt_id} owned by {prompt.user_id}")
        raise Forbidden()

    changes = _validate_update_fields(fields)
    if not changes:
        return prompt

    for name, value in changes.items():
        setattr(prompt, name, value)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to update prompt {prompt_id}")
        raise StoreUnavailable() from e

    logger.info(f"User {requester_id} updated prompt {prompt_id}: {sorted(changes)}")
    return await get_prompt(db, prompt_id)


async def delete_prompt(db: AsyncSession, prompt_id: int, requester_id: int) -> None:
    prompt = await get_prompt(db, prompt_id)
    if prompt.user_id != requester_id:
        logger.warning(f"User {requester_id} tried to delete prompt {prompt_id} owned by {prompt.user_id}")
        raise Forbidden()

    try:
        await db.delete(prompt)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to delete prompt {prompt_id}")
        raise StoreUnavailable() from e

    logger.info(f"User {requester_id} deleted prompt {prompt_id}")


async def _fetch_page(db: AsyncSession, query, count_query) -> Tuple[List[Prompt], int]:
    try:
        result = await db.execute(query)
        prompts = result.scalars().all()
        count = (await db.execute(count_query)).scalar_one()
    except SQLAlchemyError as e:
        logger.exception("Failed to list prompts")
        raise StoreUnavailable() from e
    return list(prompts), count


async def search_prompts(
    db: AsyncSession, query_text: Optional[str], skip: int = 0, limit: int = 100
) -> Tuple[List[Prompt], int]:
    """
    Case-insensitive substring match on title, body and tool.

    Wildcard characters and surrounding whitespace in ``query_text`` are
    matched literally. A blank query matches every prompt.
    """
    condition = None
    if query_text and query_text.strip():
        condition = or_(
            Prompt.title.icontains(query_text, autoescape=True),
            Prompt.body.icontains(query_text, autoescape=True),
            Prompt.tool.icontains(query_text, autoescape=True),
        )

    query = select(Prompt)
    count_query = select(func.count(Prompt.id))
    if condition is not None:
        query = query.filter(condition)
        count_query = count_query.filter(condition)

    return await _fetch_page(
        db, query.order_by(Prompt.id).offset(skip).limit(limit), count_query
    )


async def get_all_prompts(db: AsyncSession, skip: int = 0, limit: int = 100) -> Tuple[List[Prompt], int]:
    query = select(Prompt).order_by(desc(Prompt.created_at), desc(Prompt.id)).offset(skip).limit(limit)
    return await _fetch_page(db, query, select(func.count(Prompt.id)))


async def get_user_prompts(
    db: AsyncSession, user_id: int, skip: int = 0, limit: int = 100
) -> Tuple[List[Prompt], int]:
    user: Optional[User] = await get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")

    query = (
        select(Prompt)
        .filter(Prompt.user_id == user_id)
        .order_by(desc(Prompt.created_at), desc(Prompt.id))
        .offset(skip)
        .limit(limit)
    )
    count_query = select(func.count(Prompt.id)).filter(Prompt.user_id == user_id)
    return await _fetch_page(db, query, count_query)
