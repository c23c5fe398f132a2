import uuid

from pydantic import BaseModel, EmailStr, Field

from diary_bridge.enums import FamilyRole


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=100)
    user_type: FamilyRole


class MeResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    user_type: FamilyRole
