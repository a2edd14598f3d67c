"""
账号池服务
负责账号分配、隐藏、查询；分配在调用方事务内完成，不单独提交
"""
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from app.core.config import Settings
from app.core.errors import AccountNotFound, InvalidInput, PoolExhausted
from app.models import Account, AccountSource, CREDENTIAL_FIELDS
import secrets
import time
import logging

logger = logging.getLogger(__name__)

# 并发认领同一池账号时的重试次数
CLAIM_ATTEMPTS = 5


def synthesize_credentials(source: AccountSource) -> Dict[str, str]:
    """
    生成占位凭据
    真实部署中账号应由外部流程预先灌入账号池
    """
    timestamp = int(time.time() * 1000)
    rand = secrets.token_hex(4)

    if source == AccountSource.GOOGLE:
        return {
            "email": f"kiro{timestamp}{rand}@example.com",
            "refresh_token": f"aor_{rand}{timestamp}",
            "client_id": f"client_{rand}",
            "client_secret": f"secret_{rand}{timestamp}",
        }

    username = f"kiro-{rand}{timestamp % 100000}"
    return {
        "username": username,
        "access_token": f"gho_{secrets.token_hex(18)}",
        "refresh_token": f"ghr_{secrets.token_hex(18)}",
        "profile_url": f"https://github.com/{username}",
    }


class AccountPool:
    """账号池"""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    def parse_source(self, source) -> AccountSource:
        """校验账号来源是否受支持且已启用"""
        try:
            parsed = AccountSource(str(source).strip().lower())
        except ValueError:
            raise InvalidInput(f"不支持的账号来源: {source}")
        if parsed.value not in self.settings.account_sources_list:
            raise InvalidInput(f"账号来源未启用: {parsed.value}")
        return parsed

    async def allocate(self, user_id: int, source: AccountSource) -> Account:
        """
        为用户分配一个账号
        优先认领池中未分配的账号；池为空时按配置生成占位账号
        """
        account = await self._claim(user_id, source)
        if account is not None:
            return account

        if not self.settings.synthesize_accounts:
            raise PoolExhausted()

        account = Account(
            user_id=user_id,
            source=source.value,
            assigned_at=datetime.now(),
            **synthesize_credentials(source),
        )
        self.db.add(account)
        await self.db.flush()
        await self.db.refresh(account)
        return account

    async def _claim(self, user_id: int, source: AccountSource) -> Optional[Account]:
        for _ in range(CLAIM_ATTEMPTS):
            candidate_id = await self.db.scalar(
                select(Account.id)
                .where(Account.user_id.is_(None), Account.source == source.value)
                .order_by(Account.id)
                .limit(1)
                .with_for_update(skip_locked=True)
            )
            if candidate_id is None:
                return None

            # 条件更新：只有仍未分配的账号才能被认领
            result = await self.db.execute(
                update(Account)
                .where(Account.id == candidate_id, Account.user_id.is_(None))
                .values(user_id=user_id, assigned_at=datetime.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return await self.db.get(Account, candidate_id, populate_existing=True)

            logger.info(f"池账号 {candidate_id} 已被其他请求认领，重试")
        return None

    async def hide(self, user_id: int, account_id: int) -> bool:
        """隐藏账号；不属于该用户时不做任何修改"""
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account_id, Account.user_id == user_id)
            .values(is_hidden=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def get(self, user_id: int, account_id: int, source: Optional[AccountSource] = None) -> Account:
        """获取用户自己的账号（隐藏的账号仍可获取）"""
        stmt = select(Account).where(Account.id == account_id, Account.user_id == user_id)
        if source is not None:
            stmt = stmt.where(Account.source == source.value)
        account = await self.db.scalar(stmt)
        if account is None:
            raise AccountNotFound()
        return account

    async def list_visible(self, user_id: int) -> List[Account]:
        """用户未隐藏的账号，最新分配的在前"""
        result = await self.db.execute(
            select(Account)
            .where(Account.user_id == user_id, Account.is_hidden.is_(False))
            .order_by(Account.assigned_at.desc(), Account.id.desc())
        )
        return list(result.scalars().all())

    async def seed(self, source: AccountSource, bundles: Iterable[dict]) -> int:
        """向账号池灌入未分配的账号"""
        allowed = CREDENTIAL_FIELDS[source]
        count = 0
        for bundle in bundles:
            fields = {k: v for k, v in bundle.items() if k in allowed and v}
            if not fields:
                continue
            self.db.add(Account(user_id=None, source=source.value, **fields))
            count += 1
        await self.db.commit()
        logger.info(f"账号池灌入 {source.value} 账号 {count} 个")
        return count

    async def count_available(self) -> Dict[str, int]:
        """各来源池中剩余的未分配账号数"""
        result = await self.db.execute(
            select(Account.source, func.count(Account.id))
            .where(Account.user_id.is_(None))
            .group_by(Account.source)
        )
        counts = {source.value: 0 for source in AccountSource}
        counts.update({source: count for source, count in result.all()})
        return counts
