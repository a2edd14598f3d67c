"""
公告 API
"""
from fastapi import APIRouter, Depends
from app.core.config import Settings, get_settings
from app.core.response import ok

router = APIRouter(tags=["系统"])


@router.get("/announcement")
async def announcement(settings: Settings = Depends(get_settings)):
    return ok({"announcement": settings.announcement})
