"""Schemas for user accounts and authentication"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from taskmanager.models.user import UserRole
from taskmanager.schemas.common import Pagination


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(UserRegister):
    role: UserRole = UserRole.USER


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[UserRole] = None

    @field_validator("email", "password", "role")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class UserResponse(BaseModel):
    id: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserData(BaseModel):
    user: UserResponse


class AuthData(BaseModel):
    user: UserResponse
    token: str


class UserListData(BaseModel):
    users: List[UserResponse]
    pagination: Pagination
