# ledger_service/app/schemas/user_schema.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    username: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=6)

class UserSchema(BaseModel):
    id: int
    email: str
    username: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    is_verified: bool = False
    two_factor_enabled: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
