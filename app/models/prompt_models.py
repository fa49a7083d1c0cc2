# app/models/prompt_models.py
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PromptCreate(BaseModel):
    title: str
    body: str
    tool: str


class PromptUpdate(BaseModel):
    """Partial update; only the fields that are present get changed."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    body: Optional[str] = None
    tool: Optional[str] = None


class PromptCreator(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    avatar_url: Optional[str] = None


class PromptPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    body: str
    tool: str
    created_at: Optional[datetime] = None
    creator: Optional[PromptCreator] = Field(
        default=None, validation_alias=AliasChoices("creator", "user")
    )


class PromptList(BaseModel):
    prompts: List[PromptPublic]
    count: int
