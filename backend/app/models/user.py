"""
用户数据模型
设备 ID 即登录凭据，一个设备对应唯一一个用户
"""
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.sql import func
from datetime import datetime
from app.core.database import Base


class User(Base):
    """用户表"""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # 设备指纹，唯一索引
    device_id = Column(String(32), unique=True, index=True, nullable=False)

    # 积分余额
    points = Column(Integer, default=0, nullable=False)

    # 当前激活码（仅作展示标记，积分可由多个激活码累加）
    activated_code = Column(String(50), nullable=True)

    # 当前激活码的过期时间
    expire_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now, server_default=func.now())

    @property
    def is_activated(self) -> bool:
        return self.points > 0 or bool(self.activated_code)

    def __repr__(self):
        return f"<User(device_id={self.device_id}, points={self.points})>"
