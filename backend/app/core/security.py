"""
安全防护模块
用于处理激活接口限流和管理员令牌校验
"""
from fastapi import Depends, Request, HTTPException, status
from collections import defaultdict
from app.core.config import Settings, get_settings
from app.core.errors import Unauthorized
import secrets
import time
import logging

logger = logging.getLogger(__name__)

# 内存限流存储
# 结构: { "ip_address": [timestamp1, timestamp2, ...] }
# 注意: 多实例部署时各实例独立计数，只用于减缓暴力尝试，不承担账本一致性
_request_records = defaultdict(list)


def _prune_stale_clients(cutoff: float) -> None:
    """移除窗口期内没有任何请求的客户端记录"""
    stale = [ip for ip, history in _request_records.items() if not history or history[-1] < cutoff]
    for ip in stale:
        del _request_records[ip]


async def verify_rate_limiter(request: Request, settings: Settings = Depends(get_settings)):
    """
    激活接口限流依赖
    防止暴力破解激活码
    """
    client_ip = request.client.host if request.client else "unknown"
    window = settings.rate_limit_window

    now = time.time()
    _prune_stale_clients(now - window)
    history = _request_records[client_ip]

    # 1. 清理窗口期的旧记录
    while history and history[0] < now - window:
        history.pop(0)

    # 2. 检查是否超限
    if len(history) >= settings.rate_limit_max_attempts:
        logger.warning(f"安全警告: IP {client_ip} 触发激活码验证限流")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"尝试次数过多，请休息 {window} 秒后再试"
        )

    # 3. 记录本次请求
    history.append(now)
    return True


def verify_admin_token(token: str, settings: Settings) -> None:
    """
    管理员令牌校验
    未配置 ADMIN_TOKEN 时拒绝所有管理请求
    """
    expected = settings.admin_token
    # 使用 secrets.compare_digest 防止时序攻击
    if not expected or not token or not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("⚠️ 未授权的管理请求")
        raise Unauthorized()
