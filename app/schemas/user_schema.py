# app/schemas/user_schema.py
from pydantic import EmailStr, Field, field_validator, model_validator, ConfigDict, BaseModel
from datetime import datetime
from typing import List, Literal, Optional

from app.models.user import UserRoleEnum
from app.schemas.common_schema import CamelModel

# Payload carried inside the JWT
class TokenData(BaseModel):
    user_id: str
    role: Optional[str] = None


# 1. Registration body
class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    password: str = Field(..., min_length=8)
    # admins are created by scripts/create_admin.py, never through the API
    role: Literal["client", "freelancer"]
    otp_enabled: bool = False

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @model_validator(mode='after')
    def require_contact(self):
        if not self.email and not (self.phone and self.phone.strip()):
            raise ValueError('Email or phone is required')
        return self


# 2. Login body (user login and admin login)
class UserLogin(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    password: str
    role: Optional[UserRoleEnum] = None

    @model_validator(mode='after')
    def require_identifier(self):
        if not self.email and not self.phone:
            raise ValueError('Email or phone is required')
        return self


class Portfolio(CamelModel):
    images: List[str] = []
    links: List[str] = []


# 3. Profile update; every field optional, seller fields only apply to freelancers
class ProfileUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    username: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = None
    otp_enabled: Optional[bool] = None

    title: Optional[str] = Field(None, max_length=255)
    skills: Optional[List[str]] = None
    bio: Optional[str] = None
    portfolio: Optional[Portfolio] = None
    languages: Optional[List[str]] = None
    experience_level: Optional[str] = Field(None, max_length=50)


class PasswordChange(CamelModel):
    current_password: str
    new_password: str


# 4. Safe user representation (never includes the password hash)
class UserOut(CamelModel):
    user_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    role: UserRoleEnum
    avatar: Optional[str] = None
    otp_enabled: bool = False
    is_active: bool = True

    title: Optional[str] = None
    skills: Optional[List[str]] = None
    bio: Optional[str] = None
    portfolio: Optional[dict] = None
    languages: Optional[List[str]] = None
    experience_level: Optional[str] = None

    created_at: Optional[datetime] = None


class AuthPayload(CamelModel):
    user: UserOut
    token: str


class UserPayload(CamelModel):
    user: UserOut


class UsernameAvailability(CamelModel):
    username: str
    available: bool
