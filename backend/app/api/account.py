"""
账号相关 API
积分兑换账号、获取凭据、隐藏账号
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from app.core.database import get_db
from app.core.config import Settings, get_settings
from app.core.response import ok
from app.models import AccountSource
from app.services.exchange import ExchangeEngine
from app.services.identity import IdentityResolver
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["账号"])


def known_source(source: str) -> str:
    """路径中的账号来源不存在时按未知路由处理"""
    if source not in {s.value for s in AccountSource}:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return source


class ExchangeRequest(BaseModel):
    device_id: str


class AccountRequest(BaseModel):
    device_id: str
    account_id: int


@router.post("/account/hide")
async def hide_account(
    request: AccountRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """隐藏账号（不属于当前用户时不做修改）"""
    resolver = IdentityResolver(db, settings)
    user = await resolver.require(request.device_id)
    await resolver.pool.hide(user.id, request.account_id)
    logger.info(f"🗑️ 删除账号: {user.device_id[:8]}..., 账号ID: {request.account_id}")
    return ok(message="删除成功")


@router.post("/{source}/exchange")
async def exchange_account(
    request: ExchangeRequest,
    source: str = Depends(known_source),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """消耗积分提取一个账号"""
    result = await ExchangeEngine(db, settings).exchange(request.device_id, source)
    return ok(result.to_dict())


@router.post("/{source}/token")
async def get_token(
    request: AccountRequest,
    source: str = Depends(known_source),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """获取账号凭据"""
    resolver = IdentityResolver(db, settings)
    parsed = resolver.pool.parse_source(source)
    user = await resolver.require(request.device_id)
    account = await resolver.pool.get(user.id, request.account_id, parsed)
    logger.info(f"🔑 获取Token: {user.device_id[:8]}..., 账号ID: {account.id}")
    return ok(account.credentials())
