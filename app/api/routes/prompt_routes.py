# app/api/routes/prompt_routes.py
import json
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.data.database import get_db
from app.models.database_models.user import User
from app.models.prompt_models import PromptCreate, PromptList, PromptPublic, PromptUpdate
from app.services.auth_services import get_current_user_from_cookie
from app.services.database.prompt_database_services import (
    create_prompt,
    delete_prompt,
    get_all_prompts,
    get_prompt,
    parse_prompt_create,
    update_prompt,
)

router = APIRouter(tags=["Prompts"])


def _json_body_schema(model) -> dict:
    return {
        "requestBody": {
            "content": {"application/json": {"schema": model.model_json_schema()}},
            "required": True,
        }
    }


# Read after the session user is resolved; malformed JSON is a 400
async def read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Request body is not valid JSON: {e}")


@router.post(
    "",
    response_model=PromptPublic,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=_json_body_schema(PromptCreate),
)
async def create_new_prompt(
    request: Request,
    user: User = Depends(get_current_user_from_cookie),
    db: AsyncSession = Depends(get_db),
):
    prompt_in = parse_prompt_create(await read_json_body(request))
    return await create_prompt(db, user.id, prompt_in.title, prompt_in.body, prompt_in.tool)


@router.get("", response_model=PromptList)
async def read_prompts(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Feed of every prompt, newest first."""
    prompts, count = await get_all_prompts(db, skip=offset, limit=limit)
    return {"prompts": prompts, "count": count}


@router.get("/{prompt_id}", response_model=PromptPublic)
async def read_prompt(prompt_id: int, db: AsyncSession = Depends(get_db)):
    return await get_prompt(db, prompt_id)


@router.put(
    "/{prompt_id}",
    response_model=PromptPublic,
    openapi_extra=_json_body_schema(PromptUpdate),
)
async def edit_prompt(
    prompt_id: int,
    request: Request,
    user: User = Depends(get_current_user_from_cookie),
    db: AsyncSession = Depends(get_db),
):
    fields = await read_json_body(request)
    return await update_prompt(db, prompt_id, user.id, fields)


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_prompt(
    prompt_id: int,
    user: User = Depends(get_current_user_from_cookie),
    db: AsyncSession = Depends(get_db),
):
    await delete_prompt(db, prompt_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
