"""
定时任务模块
定期清除已过期的当前激活码标记（积分与账号不受影响）
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from app.core.config import Settings
from app.core.database import get_session_factory
from app.services.activation import ActivationLedger
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def sweep_expired_activations(settings: Settings) -> int:
    """清除过期激活标记"""
    async with get_session_factory()() as db:
        try:
            cleared = await ActivationLedger(db, settings).sweep_expired_markers()
        except Exception:
            logger.exception("清除过期激活标记时发生错误")
            return 0

    if cleared > 0:
        logger.info(f"清除过期激活标记完成，共 {cleared} 个用户")
    return cleared


def start_scheduler(settings: Settings):
    """启动定时任务调度器"""
    scheduler.add_job(
        sweep_expired_activations,
        trigger=IntervalTrigger(minutes=settings.activation_sweep_minutes),
        args=[settings],
        id="sweep_expired_activations",
        name="清除过期激活标记",
        replace_existing=True
    )

    scheduler.start()
    logger.info("定时任务调度器已启动")


def stop_scheduler():
    """停止定时任务调度器"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("定时任务调度器已停止")
