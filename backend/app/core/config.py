"""
应用配置模块
使用 pydantic-settings 从环境变量加载配置
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """应用配置类"""

    # 数据库
    database_url: str = "sqlite+aiosqlite:///./data/app.db"

    # 服务器
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # CORS
    cors_origins: str = "*"

    # 管理员令牌（为空时关闭所有管理接口）
    admin_token: str = ""

    # 积分规则
    exchange_price: int = 100  # 提取一个账号所需积分
    device_id_max_length: int = 32

    # 账号池
    account_sources: str = "google,github"
    synthesize_accounts: bool = True  # 账号池为空时是否生成占位账号

    # 公告
    announcement: str = "🎉 欢迎使用 Kiro 飞行模式！<br>💰 100积分 = 1个账号<br>📧 联系管理员获取激活码"

    # 激活接口限流
    rate_limit_window: int = 60  # 时间窗口（秒）
    rate_limit_max_attempts: int = 10  # 窗口内允许的最大尝试次数

    # 定时任务
    enable_scheduler: bool = True
    activation_sweep_minutes: int = 10

    @property
    def cors_origins_list(self) -> List[str]:
        """将逗号分隔的 CORS 源转换为列表"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def account_sources_list(self) -> List[str]:
        """启用的账号来源"""
        return [s.strip().lower() for s in self.account_sources.split(",") if s.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例（带缓存）"""
    return Settings()
