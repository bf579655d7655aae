"""Response models for the chunked upload API.

Field names follow the server's JSON payloads.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from .base import BaseModel


class InitResponse(BaseModel):
    """Response to ``POST /upload/init``."""

    upload_id: str = Field(..., min_length=1, description="Session ID assigned by the server")
    chunk_size: int | None = Field(None, description="Chunk size the server expects")
    message: str | None = None


class ChunkResponse(BaseModel):
    """Response to ``POST /upload/chunk/{id}``."""

    upload_id: str
    chunk_index: int
    chunks_received: int = Field(..., ge=0)
    total_chunks: int = Field(..., ge=0)
    is_complete: bool = False
    message: str | None = None


class CompleteResponse(BaseModel):
    """Response to ``POST /upload/complete/{id}``."""

    upload_id: str
    file_path: str = Field(..., min_length=1, description="Remote storage location")
    filename: str | None = None
    total_size: int | None = None
    message: str | None = None


class StatusResponse(BaseModel):
    """Response to ``GET /upload/status/{id}``."""

    upload_id: str
    filename: str | None = None
    total_size: int = Field(..., ge=0)
    total_chunks: int = Field(..., ge=0)
    chunks_received: list[int] = Field(default_factory=list)
    is_complete: bool = False
    file_path: str | None = None

    @field_validator("chunks_received", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return [] if value is None else value
