"""
数据库连接模块
使用 SQLAlchemy 异步引擎，连接在启动时打开、关闭时释放
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from typing import AsyncIterator, Optional
import os
import logging

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    """ORM 基类"""
    pass


def _ensure_sqlite_dir(database_url: str) -> None:
    """SQLite 文件数据库需要提前创建目录"""
    if not database_url.startswith("sqlite+aiosqlite:///"):
        return
    path = database_url.replace("sqlite+aiosqlite:///", "")
    if path and path != ":memory:":
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)


def init_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """创建异步引擎与会话工厂"""
    global _engine, _session_factory

    _ensure_sqlite_dir(database_url)
    _engine = create_async_engine(
        database_url,
        echo=echo,  # 调试模式下打印 SQL
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    return _engine


def get_session_factory() -> async_sessionmaker:
    if _session_factory is None:
        raise RuntimeError("数据库尚未初始化，请先调用 init_engine()")
    return _session_factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """依赖注入：获取数据库会话（未提交的修改在关闭时回滚）"""
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """初始化数据库（创建表）"""
    if _engine is None:
        raise RuntimeError("数据库尚未初始化，请先调用 init_engine()")
    # 导入模型以注册到 Base.metadata
    import app.models  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """释放连接池"""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("数据库连接已关闭")
    _engine = None
    _session_factory = None
