"""
激活码兑换 API
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from app.core.database import get_db
from app.core.config import Settings, get_settings
from app.core.response import ok
from app.core.security import verify_rate_limiter
from app.services.activation import ActivationLedger

router = APIRouter(tags=["激活码"])


class ActivateRequest(BaseModel):
    """兑换激活码请求体"""
    device_id: str
    code: str


@router.post("/activate")
async def activate(
    request: ActivateRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: bool = Depends(verify_rate_limiter)
):
    """
    兑换激活码
    积分累加，当前激活码标记被最新兑换的激活码覆盖
    """
    result = await ActivationLedger(db, settings).redeem(request.device_id, request.code)
    return ok({
        "current_points": result.current_points,
        "expire_at": result.expire_at,
        "accounts": [a.to_dict() for a in result.accounts],
    })
