"""
Pydantic schemas for the HTTP API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LogLoginRequest(BaseModel):
    # Stored as sent; numeric Date.now() stamps are kept as their string form.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    email: Optional[str] = None
    name: Optional[str] = None
    timestamp: Optional[str] = None


class StatusResponse(BaseModel):
    status: Literal["ok"]


class LoginRecordResponse(BaseModel):
    id: Optional[str] = Field(default=None, serialization_alias="_id")
    email: Optional[str] = None
    name: Optional[str] = None
    timestamp: Optional[str] = None


class UploadResponse(BaseModel):
    message: str
    fileId: str


class StoredFileResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="_id")
    filename: str
    length: int
    chunkSize: int
    uploadDate: datetime
    metadata: dict = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
