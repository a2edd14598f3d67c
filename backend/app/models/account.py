"""
账号数据模型
账号按来源分组，分配给用户后归属不可变更，删除只做隐藏
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.sql import func
from datetime import datetime
from app.core.database import Base
import enum


class AccountSource(str, enum.Enum):
    """账号来源枚举"""
    GOOGLE = "google"
    GITHUB = "github"


# 各来源对外返回的凭据字段
CREDENTIAL_FIELDS = {
    AccountSource.GOOGLE: ("email", "refresh_token", "access_token", "client_id", "client_secret"),
    AccountSource.GITHUB: ("username", "access_token", "refresh_token", "profile_url"),
}


class Account(Base):
    """账号表"""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # 所属用户，为空表示仍在账号池中等待分配
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)

    source = Column(String(20), default=AccountSource.GOOGLE.value, nullable=False, index=True)

    # 凭据字段（按来源取用）
    email = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    refresh_token = Column(Text, nullable=True)
    access_token = Column(Text, nullable=True)
    client_id = Column(String(255), nullable=True)
    client_secret = Column(Text, nullable=True)
    profile_url = Column(String(255), nullable=True)

    # 用户"删除"账号时只隐藏
    is_hidden = Column(Boolean, default=False, nullable=False)

    # 分配给用户的时间，账号列表按此排序
    assigned_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.now, server_default=func.now())

    def credentials(self) -> dict:
        """返回当前来源的凭据包"""
        fields = CREDENTIAL_FIELDS[AccountSource(self.source)]
        return {name: getattr(self, name) for name in fields}

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "source": self.source,
            "is_hidden": self.is_hidden,
            "assigned_at": self.assigned_at,
            "created_at": self.created_at,
        }
        data.update(self.credentials())
        return data

    def __repr__(self):
        return f"<Account(id={self.id}, source={self.source}, user_id={self.user_id})>"
