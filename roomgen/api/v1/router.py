from fastapi import APIRouter

from roomgen.api.v1.generate import router as generate_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(generate_router)
