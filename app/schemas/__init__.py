from app.schemas.auth import (
    LoginOutSchema,
    LoginSchema,
    MessageOutSchema,
    ProfileOutSchema,
    RegisterSchema,
    UserOutSchema,
)
from app.schemas.files import StoredFileSchema, UploadOutSchema

__all__ = [
    "LoginOutSchema",
    "LoginSchema",
    "MessageOutSchema",
    "ProfileOutSchema",
    "RegisterSchema",
    "StoredFileSchema",
    "UploadOutSchema",
    "UserOutSchema",
]
