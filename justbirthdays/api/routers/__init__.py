"""
API 路由分组模块
"""
from fastapi import APIRouter

from .auth import auth_router
from .birthday import birthday_router
from .settings import settings_router
from .widget import widget_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router)
api_router.include_router(birthday_router)
api_router.include_router(settings_router)
api_router.include_router(widget_router)

__all__ = [
    "api_router",
    "auth_router",
    "birthday_router",
    "settings_router",
    "widget_router",
]
