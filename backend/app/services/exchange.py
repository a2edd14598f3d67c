"""
积分兑换账号服务
扣除积分与分配账号在同一事务内完成，扣分为条件更新（余额不足时影响 0 行）
"""
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass
from typing import Optional
from app.core.config import Settings
from app.core.errors import InsufficientPoints
from app.models import Account, User
from app.services.identity import IdentityResolver
import logging

logger = logging.getLogger(__name__)


@dataclass
class ExchangeResult:
    """兑换结果"""
    account: Account
    remaining_points: int

    def to_dict(self) -> dict:
        data = {"account_id": self.account.id}
        data.update(self.account.credentials())
        data["remaining_points"] = self.remaining_points
        return data


class ExchangeEngine:
    """积分兑换引擎"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.identity = IdentityResolver(db, settings)
        self.pool = self.identity.pool

    @property
    def price(self) -> int:
        return self.settings.exchange_price

    def _insufficient(self) -> InsufficientPoints:
        return InsufficientPoints(f"积分不足，需要{self.price}积分")

    async def exchange(self, device_id: Optional[str], source) -> ExchangeResult:
        source = self.pool.parse_source(source)
        user = await self.identity.require(device_id)

        if user.points < self.price:
            logger.info(f"⚠️ 提取失败: 积分不足 - {user.device_id[:8]}..., 当前积分: {user.points}")
            raise self._insufficient()

        try:
            debited = await self.db.execute(
                update(User)
                .where(User.id == user.id, User.points >= self.price)
                .values(points=User.points - self.price)
                .execution_options(synchronize_session=False)
            )
            if debited.rowcount != 1:
                # 并发请求已先扣除
                raise self._insufficient()

            account = await self.pool.allocate(user.id, source)
            remaining = await self.db.scalar(select(User.points).where(User.id == user.id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"💰 提取账号: {user.device_id[:8]}..., 来源: {source.value}, "
            f"账号ID: {account.id}, 剩余积分: {remaining}"
        )
        return ExchangeResult(account=account, remaining_points=remaining)
