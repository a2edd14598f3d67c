"""
激活码数据模型
激活码由管理员创建，一次性使用，兑换后为用户增加积分
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from datetime import datetime
from app.core.database import Base


class ActivationCode(Base):
    """激活码表"""
    __tablename__ = "activation_codes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # 激活码，唯一索引
    code = Column(String(50), unique=True, index=True, nullable=False)

    # 面值积分
    points = Column(Integer, nullable=False)

    # 过期时间
    expire_at = Column(DateTime, nullable=False)

    # 是否已使用（只能从 False 变为 True 一次）
    is_used = Column(Boolean, default=False, nullable=False)

    # 兑换用户，与 is_used 同时写入
    used_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.now, server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "points": self.points,
            "expire_at": self.expire_at,
            "is_used": self.is_used,
            "used_by": self.used_by,
            "created_at": self.created_at,
        }

    def __repr__(self):
        return f"<ActivationCode(code={self.code}, points={self.points}, is_used={self.is_used})>"
