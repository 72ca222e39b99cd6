from fastapi import APIRouter

from garden.core.authentication import router as authentication
from garden.platform.healthcheck import router as healthcheck

api_router = APIRouter()
api_router.include_router(healthcheck.router, prefix='/health', tags=['health'])

auth_router = APIRouter()
auth_router.include_router(authentication.router, prefix='/auth', tags=['auth'])
