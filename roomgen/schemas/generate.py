"""Pydantic schemas for the generation API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationRequest(BaseModel):
    """Redesign request as posted by the client."""

    model_config = ConfigDict(frozen=True)

    image_url: str = Field(alias="imageUrl", min_length=1, description="URL of the uploaded room photo")
    theme: str = Field(min_length=1, description="Design theme, e.g. 'Modern'")
    room: str = Field(min_length=1, description="Room type, e.g. 'Living Room'")

    @field_validator("image_url", "theme", "room")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class GenerationResponse(BaseModel):
    image: str


class ErrorResponse(BaseModel):
    error: str
    kind: str
    detail: str | None = None
