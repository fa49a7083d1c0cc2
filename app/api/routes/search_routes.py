# app/api/routes/search_routes.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.data.database import get_db
from app.models.prompt_models import PromptList
from app.services.database.prompt_database_services import search_prompts

router = APIRouter(tags=["Search"])


@router.get("/search", response_model=PromptList)
async def search(
    q: Optional[str] = Query(default=None, description="Text to look for in title, body or tool"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive keyword search over prompts."""
    prompts, count = await search_prompts(db, q, skip=offset, limit=limit)
    return {"prompts": prompts, "count": count}
