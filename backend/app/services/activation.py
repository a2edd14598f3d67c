"""
激活码账本服务
激活码一次性兑换：标记已使用与增加积分在同一事务内完成
"""
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from app.core.config import Settings
from app.core.errors import CodeExpired, CodeInvalidOrUsed, InvalidInput
from app.models import Account, ActivationCode, User
from app.services.identity import IdentityResolver
import logging

logger = logging.getLogger(__name__)


@dataclass
class RedeemResult:
    """兑换结果"""
    current_points: int
    expire_at: datetime
    accounts: List[Account] = field(default_factory=list)


class ActivationLedger:
    """激活码账本"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.identity = IdentityResolver(db, settings)

    async def redeem(self, device_id: Optional[str], code: Optional[str], now: Optional[datetime] = None) -> RedeemResult:
        """
        兑换激活码

        1. 用户必须已登录过
        2. 激活码存在且未使用
        3. 未过期
        4. 条件更新 is_used（仅 False -> True 成功一次），随后累加积分并覆盖当前激活码标记
        """
        code = (code or "").strip()
        if not code:
            raise InvalidInput()
        user = await self.identity.require(device_id)
        now = now or datetime.now()

        activation = await self.db.scalar(
            select(ActivationCode)
            .where(ActivationCode.code == code)
            .execution_options(populate_existing=True)
        )
        if activation is None or activation.is_used:
            logger.info(f"⚠️ 激活失败: 激活码无效或已使用 - {code}")
            raise CodeInvalidOrUsed()

        if now >= activation.expire_at:
            logger.info(f"⚠️ 激活失败: 激活码已过期 - {code}")
            raise CodeExpired()

        try:
            claimed = await self.db.execute(
                update(ActivationCode)
                .where(ActivationCode.id == activation.id, ActivationCode.is_used.is_(False))
                .values(is_used=True, used_by=user.id)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                # 并发请求已抢先使用
                raise CodeInvalidOrUsed()

            await self.db.execute(
                update(User)
                .where(User.id == user.id)
                .values(
                    points=User.points + activation.points,
                    activated_code=activation.code,
                    expire_at=activation.expire_at,
                )
                .execution_options(synchronize_session=False)
            )
            current_points = await self.db.scalar(select(User.points).where(User.id == user.id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        accounts = await self.identity.pool.list_visible(user.id)
        logger.info(f"✅ 激活成功: {user.device_id[:8]}..., 激活码: {code}, 新积分: {current_points}")
        return RedeemResult(current_points=current_points, expire_at=activation.expire_at, accounts=accounts)

    async def logout(self, device_id: Optional[str]) -> bool:
        """
        退出激活码：只清除当前激活码标记，积分与账号保留
        返回是否存在该设备
        """
        device_id = self.identity.normalize_device_id(device_id)
        result = await self.db.execute(
            update(User)
            .where(User.device_id == device_id)
            .values(activated_code=None, expire_at=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        cleared = result.rowcount > 0
        logger.info(f"🚪 用户退出: {device_id[:8]}..., 存在: {cleared}")
        return cleared

    async def sweep_expired_markers(self, now: Optional[datetime] = None) -> int:
        """清除已过期的当前激活码标记（定时任务调用）"""
        now = now or datetime.now()
        result = await self.db.execute(
            update(User)
            .where(User.expire_at.isnot(None), User.expire_at <= now)
            .values(activated_code=None, expire_at=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount
