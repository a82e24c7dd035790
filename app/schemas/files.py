"""Pydantic schemas for upload results."""
from pydantic import BaseModel, Field


class StoredFileSchema(BaseModel):
    original_name: str = Field(serialization_alias="originalName")
    filename: str
    category: str
    size: int
    mimetype: str
    url: str


class UploadOutSchema(BaseModel):
    success: bool
    message: str
    file: StoredFileSchema
