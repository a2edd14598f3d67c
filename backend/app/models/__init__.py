"""
数据模型
"""
from app.models.user import User
from app.models.account import Account, AccountSource, CREDENTIAL_FIELDS
from app.models.activation_code import ActivationCode

__all__ = [
    "User",
    "Account",
    "AccountSource",
    "CREDENTIAL_FIELDS",
    "ActivationCode",
]
