# app/models/database_models/prompt.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.data.database import Base


class Prompt(Base):
    __tablename__ = "prompts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    tool = Column(String, nullable=False)  # e.g., "chatgpt", "midjourney"

    user = relationship("User", back_populates="prompts", lazy="joined")
