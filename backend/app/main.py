"""
Kiro 飞行模式 - 积分与账号兑换后端服务入口
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from app.core.config import Settings, get_settings
from app.core.database import init_engine, init_db, close_db
from app.core.response import register_exception_handlers
from app.api import api_router, admin_router
from app.services.scheduler import start_scheduler, stop_scheduler
import logging

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings: Settings = app.state.settings
    logger.info("🚀 正在启动 Kiro Flight Mode Server...")

    # 初始化数据库，失败时直接退出（没有数据库无法提供服务）
    try:
        init_engine(settings.database_url, echo=settings.debug)
        await init_db()
    except Exception:
        logger.critical("❌ 数据库连接失败，服务退出", exc_info=True)
        await close_db()
        raise
    logger.info("✅ 数据库初始化完成")

    if settings.enable_scheduler:
        start_scheduler(settings)
        logger.info("✅ 定时任务已启动")

    yield

    # 关闭时
    stop_scheduler()
    await close_db()
    logger.info("👋 服务已关闭")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """创建 FastAPI 应用"""
    settings = settings or get_settings()

    app = FastAPI(
        title="Kiro Flight Mode Server",
        description="设备积分、激活码兑换与账号提取服务",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # 配置 CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # 注册路由
    app.include_router(api_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root():
        """健康检查"""
        return {
            "status": "ok",
            "message": "Kiro Flight Mode Server",
            "version": "1.0.0",
            "timestamp": datetime.now().isoformat()
        }

    @app.get("/health")
    async def health_check():
        """健康检查端点"""
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
