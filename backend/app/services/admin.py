"""
管理服务
激活码创建、账号池灌入、统计与列表（只读）
"""
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timedelta
from typing import Iterable, List
from app.core.config import Settings
from app.core.errors import InvalidInput
from app.models import Account, ActivationCode, User
from app.services.account_pool import AccountPool
import secrets
import string
import logging

logger = logging.getLogger(__name__)

CODE_CHARSET = string.ascii_uppercase + string.digits  # A-Z, 0-9
CODE_LENGTH = 12
MAX_BATCH = 500


def generate_code() -> str:
    """生成随机激活码"""
    return "".join(secrets.choice(CODE_CHARSET) for _ in range(CODE_LENGTH))


class AdminService:
    """管理服务"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.pool = AccountPool(db, settings)

    async def create_code(self, code: str, points: int, expire_days: int) -> ActivationCode:
        code = (code or "").strip()
        if not code or points <= 0 or expire_days <= 0:
            raise InvalidInput()

        activation = ActivationCode(
            code=code,
            points=points,
            expire_at=datetime.now() + timedelta(days=expire_days),
        )
        self.db.add(activation)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise InvalidInput("创建失败，激活码可能已存在")

        await self.db.refresh(activation)
        logger.info(f"✅ 创建激活码: {code}, 积分: {points}, 有效期: {expire_days}天")
        return activation

    async def batch_create_codes(self, count: int, points: int, expire_days: int) -> List[ActivationCode]:
        """批量生成随机激活码"""
        if count <= 0 or count > MAX_BATCH or points <= 0 or expire_days <= 0:
            raise InvalidInput()

        expire_at = datetime.now() + timedelta(days=expire_days)
        codes = set()
        while len(codes) < count:
            codes.add(generate_code())

        existing = await self.db.scalars(select(ActivationCode.code).where(ActivationCode.code.in_(list(codes))))
        codes -= set(existing.all())

        created = [ActivationCode(code=c, points=points, expire_at=expire_at) for c in sorted(codes)]
        self.db.add_all(created)
        await self.db.commit()
        for activation in created:
            await self.db.refresh(activation)

        logger.info(f"批量创建激活码: 新增 {len(created)}, 积分: {points}, 有效期: {expire_days}天")
        return created

    async def seed_accounts(self, source, bundles: Iterable[dict]) -> int:
        return await self.pool.seed(self.pool.parse_source(source), bundles)

    async def stats(self) -> dict:
        total_users = await self.db.scalar(select(func.count(User.id)))
        total_accounts = await self.db.scalar(
            select(func.count(Account.id)).where(Account.user_id.isnot(None), Account.is_hidden.is_(False))
        )
        unused_codes = await self.db.scalar(
            select(func.count(ActivationCode.id)).where(ActivationCode.is_used.is_(False))
        )
        return {
            "total_users": total_users,
            "total_accounts": total_accounts,
            "unused_codes": unused_codes,
            "pool_available": await self.pool.count_available(),
        }

    async def list_users(self, limit: int = 50, offset: int = 0) -> List[dict]:
        result = await self.db.scalars(
            select(User).order_by(User.id.desc()).limit(limit).offset(offset)
        )
        return [
            {
                "id": u.id,
                "device_id": u.device_id,
                "points": u.points,
                "activated_code": u.activated_code,
                "expire_at": u.expire_at,
                "created_at": u.created_at,
            }
            for u in result.all()
        ]

    async def list_codes(self, limit: int = 50, offset: int = 0) -> List[dict]:
        result = await self.db.scalars(
            select(ActivationCode).order_by(ActivationCode.id.desc()).limit(limit).offset(offset)
        )
        return [c.to_dict() for c in result.all()]

    async def list_accounts(self, limit: int = 50, offset: int = 0) -> List[dict]:
        result = await self.db.scalars(
            select(Account).order_by(Account.id.desc()).limit(limit).offset(offset)
        )
        rows = []
        for account in result.all():
            data = account.to_dict()
            data["user_id"] = account.user_id
            rows.append(data)
        return rows
