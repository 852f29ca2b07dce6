"""
数据访问层
"""
from app.repositories.user_repository import UserRepository
from app.repositories.otp_repository import UserOtpRepository

__all__ = [
    "UserRepository",
    "UserOtpRepository",
]
