"""
用户相关 API
登录/注册、退出激活码
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from app.core.database import get_db
from app.core.config import Settings, get_settings
from app.core.response import ok
from app.services.activation import ActivationLedger
from app.services.identity import IdentityResolver
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user", tags=["用户"])


class DeviceRequest(BaseModel):
    """只携带设备 ID 的请求体"""
    device_id: str


@router.post("/login")
async def login(
    request: DeviceRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    登录/注册
    设备首次访问时自动创建用户
    """
    identity = await IdentityResolver(db, settings).resolve_or_create(request.device_id)
    user = identity.user

    activated_code = None
    if user.activated_code:
        activated_code = {"code": user.activated_code, "expire_at": user.expire_at}

    if not identity.created:
        logger.info(f"👤 用户登录: {user.device_id[:8]}..., 积分: {user.points}, 账号数: {len(identity.accounts)}")

    return ok({
        "points": user.points,
        "is_activated": user.is_activated,
        "accounts": [a.to_dict() for a in identity.accounts],
        "activated_code": activated_code,
    })


@router.post("/logout")
async def logout(
    request: DeviceRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """退出激活码（积分和账号保留）"""
    await ActivationLedger(db, settings).logout(request.device_id)
    return ok(message="退出成功")
