"""
API 路由注册
"""
from fastapi import APIRouter
from app.api.user import router as user_router
from app.api.activate import router as activate_router
from app.api.account import router as account_router
from app.api.system import router as system_router
from app.api.admin import router as admin_router

__all__ = ["api_router", "admin_router"]

api_router = APIRouter(prefix="/api")

# 注册子路由（账号路由含 /{source}/... 通配，放在最后）
api_router.include_router(user_router)
api_router.include_router(activate_router)
api_router.include_router(system_router)
api_router.include_router(account_router)
