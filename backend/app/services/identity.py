"""
身份解析服务
设备 ID -> 用户记录，首次访问时自动注册
"""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass, field
from typing import List, Optional
from app.core.config import Settings
from app.core.errors import InvalidInput, UserNotFound
from app.models import Account, User
from app.services.account_pool import AccountPool
import logging

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """解析结果：用户及其可见账号"""
    user: User
    accounts: List[Account] = field(default_factory=list)
    created: bool = False


class IdentityResolver:
    """身份解析"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.pool = AccountPool(db, settings)

    def normalize_device_id(self, device_id: Optional[str]) -> str:
        if not device_id or not device_id.strip():
            raise InvalidInput("缺少 device_id")
        if device_id != device_id.strip():
            raise InvalidInput("device_id 格式错误")
        if len(device_id) > self.settings.device_id_max_length:
            raise InvalidInput("device_id 格式错误")
        return device_id

    async def find(self, device_id: Optional[str]) -> Optional[User]:
        device_id = self.normalize_device_id(device_id)
        return await self.db.scalar(
            select(User)
            .where(User.device_id == device_id)
            .execution_options(populate_existing=True)
        )

    async def require(self, device_id: Optional[str]) -> User:
        """查找已登录过的用户，不存在时报错"""
        user = await self.find(device_id)
        if user is None:
            raise UserNotFound()
        return user

    async def resolve_or_create(self, device_id: Optional[str]) -> Identity:
        """
        登录/注册
        同一设备并发首次登录时依赖 device_id 唯一索引，冲突方回读已创建的用户
        """
        device_id = self.normalize_device_id(device_id)
        user = await self.find(device_id)
        if user is not None:
            accounts = await self.pool.list_visible(user.id)
            return Identity(user=user, accounts=accounts)

        self.db.add(User(device_id=device_id, points=0))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            user = await self.find(device_id)
            if user is None:
                raise
            logger.info(f"并发注册冲突，复用已有用户: {device_id[:8]}...")
            accounts = await self.pool.list_visible(user.id)
            return Identity(user=user, accounts=accounts)

        user = await self.find(device_id)
        logger.info(f"📝 新用户注册: {device_id[:8]}...")
        return Identity(user=user, created=True)
