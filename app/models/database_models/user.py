# app/models/database_models/user.py
from sqlalchemy import Column, DateTime, Integer, LargeBinary, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.data.database import Base
from app.models.database_models.prompt import Prompt


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    avatar_url = Column(String, nullable=True)
    # Null for accounts created through federated sign-in
    hashed_password = Column(LargeBinary, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    prompts = relationship("Prompt", back_populates="user")
