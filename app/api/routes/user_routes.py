# app/api/routes/user_routes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.data.database import get_db
from app.models.prompt_models import PromptList
from app.services.database.prompt_database_services import get_user_prompts

router = APIRouter(tags=["Users"])


@router.get("/{user_id}/prompts", response_model=PromptList)
async def read_user_prompts(
    user_id: int,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Prompts created by one user, newest first."""
    prompts, count = await get_user_prompts(db, user_id, skip=offset, limit=limit)
    return {"prompts": prompts, "count": count}
