from fastapi import APIRouter

from garden.platform.router import api_router as platform_router
from garden.platform.router import auth_router

api_router = APIRouter()
api_router.include_router(platform_router)
api_router.include_router(auth_router, prefix='/api')
