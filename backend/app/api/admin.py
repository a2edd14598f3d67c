"""
管理接口
所有请求先校验管理员令牌，再访问数据库
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import List
from app.core.database import get_db
from app.core.config import Settings, get_settings
from app.core.response import ok
from app.core.security import verify_admin_token
from app.services.admin import AdminService, MAX_BATCH

router = APIRouter(prefix="/admin", tags=["管理"])


class AdminRequest(BaseModel):
    admin_token: str = ""


class CreateCodeRequest(AdminRequest):
    """创建激活码请求"""
    code: str
    points: int = Field(..., gt=0)
    expire_days: int = Field(..., gt=0)


class BatchCreateCodesRequest(AdminRequest):
    """批量生成激活码请求"""
    count: int = Field(..., gt=0, le=MAX_BATCH)
    points: int = Field(..., gt=0)
    expire_days: int = Field(..., gt=0)


class SeedAccountsRequest(AdminRequest):
    """灌入账号池请求，accounts 为各来源的凭据字段"""
    source: str
    accounts: List[dict]


@router.post("/create-code")
async def create_code(
    request: CreateCodeRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(request.admin_token, settings)
    activation = await AdminService(db, settings).create_code(request.code, request.points, request.expire_days)
    return ok(
        {"code": activation.code, "points": activation.points, "expire_at": activation.expire_at},
        message="激活码创建成功"
    )


@router.post("/batch-create-codes")
async def batch_create_codes(
    request: BatchCreateCodesRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(request.admin_token, settings)
    created = await AdminService(db, settings).batch_create_codes(request.count, request.points, request.expire_days)
    return ok({
        "created": len(created),
        "codes": [c.code for c in created],
        "expire_at": created[0].expire_at if created else None,
    })


@router.post("/seed-accounts")
async def seed_accounts(
    request: SeedAccountsRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(request.admin_token, settings)
    seeded = await AdminService(db, settings).seed_accounts(request.source, request.accounts)
    return ok({"seeded": seeded})


@router.get("/stats")
async def stats(
    admin_token: str = "",
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(admin_token, settings)
    return ok(await AdminService(db, settings).stats())


@router.get("/users")
async def list_users(
    admin_token: str = "",
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(admin_token, settings)
    return ok(await AdminService(db, settings).list_users(limit, offset))


@router.get("/codes")
async def list_codes(
    admin_token: str = "",
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(admin_token, settings)
    return ok(await AdminService(db, settings).list_codes(limit, offset))


@router.get("/accounts")
async def list_accounts(
    admin_token: str = "",
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    verify_admin_token(admin_token, settings)
    return ok(await AdminService(db, settings).list_accounts(limit, offset))
