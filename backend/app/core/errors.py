"""
业务错误定义
所有账本操作的失败都以 LedgerError 子类抛出，由 API 边界统一转换为 code=1 响应
"""
from typing import Optional
import enum


class ErrorKind(str, enum.Enum):
    """错误类型枚举"""
    INVALID_INPUT = "InvalidInput"
    USER_NOT_FOUND = "UserNotFound"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    CODE_INVALID_OR_USED = "CodeInvalidOrUsed"
    CODE_EXPIRED = "CodeExpired"
    INSUFFICIENT_POINTS = "InsufficientPoints"
    POOL_EXHAUSTED = "PoolExhausted"
    UNAUTHORIZED = "Unauthorized"
    STORE_UNAVAILABLE = "StoreUnavailable"


class LedgerError(Exception):
    """账本错误基类"""
    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_message: str = "参数错误"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __repr__(self):
        return f"<{type(self).__name__}(kind={self.kind.value}, message={self.message})>"


class InvalidInput(LedgerError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "参数错误"


class UserNotFound(LedgerError):
    kind = ErrorKind.USER_NOT_FOUND
    default_message = "用户不存在"


class AccountNotFound(LedgerError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND
    default_message = "账号不存在"


class CodeInvalidOrUsed(LedgerError):
    kind = ErrorKind.CODE_INVALID_OR_USED
    default_message = "激活码无效或已使用"


class CodeExpired(LedgerError):
    kind = ErrorKind.CODE_EXPIRED
    default_message = "激活码已过期"


class InsufficientPoints(LedgerError):
    kind = ErrorKind.INSUFFICIENT_POINTS
    default_message = "积分不足"


class PoolExhausted(LedgerError):
    kind = ErrorKind.POOL_EXHAUSTED
    default_message = "账号池已空，请稍后再试"


class Unauthorized(LedgerError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "无权限"


class StoreUnavailable(LedgerError):
    kind = ErrorKind.STORE_UNAVAILABLE
    default_message = "服务暂不可用，请稍后再试"
