# app/models/auth_models.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class PasswordValidationError(Exception):
    def __init__(self, messages: List[str]):
        self.messages = messages
        super().__init__(", ".join(messages))


class ValidationError(BaseModel):
    loc: List[str]
    msg: str
    type: str


class TokenData(BaseModel):
    user_id: Optional[int] = None


class SignUpRequest(BaseModel):
    display_name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class GoogleSignInRequest(BaseModel):
    credential: str


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    email: str
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    user: UserPublic
