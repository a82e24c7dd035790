"""Pydantic schemas for register / login / profile."""
from datetime import datetime

from pydantic import BaseModel, Field


class RegisterSchema(BaseModel):
    # optional so missing fields get the friendly 400, not a 422
    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginSchema(BaseModel):
    username: str | None = None
    password: str | None = None


class MessageOutSchema(BaseModel):
    success: bool
    message: str


class UserOutSchema(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True


class ProfileUserSchema(UserOutSchema):
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")


class LoginOutSchema(BaseModel):
    success: bool
    message: str
    token: str
    user: UserOutSchema


class ProfileOutSchema(BaseModel):
    success: bool
    user: ProfileUserSchema
