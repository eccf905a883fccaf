"""API endpoint for room redesign generation.

Provides:
  - POST /generate: redesign a room photo, wait for the result, return its URL
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from roomgen.core.dependencies import get_generation_service
from roomgen.generation.rate_limiter import client_identity
from roomgen.generation.service import GenerationService
from roomgen.schemas.generate import ErrorResponse, GenerationResponse

router = APIRouter(tags=["generate"])


@router.post(
    "/generate",
    response_model=GenerationResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def generate(
    request: Request,
    service: GenerationService = Depends(get_generation_service),
):
    """Redesign a room photo in the requested theme.

    Body: ``{"imageUrl": ..., "theme": ..., "room": ...}``. The raw body is
    handed to the service so the rate limit is charged before validation.
    Blocks until the prediction finishes (about 30s at most).
    """
    identity = client_identity(request.headers.get("x-real-ip"))
    body = await request.body()
    result = await service.handle(body, identity)
    return GenerationResponse(image=result.image)
