"""
数据库模型
"""
from app.models.user import User
from app.models.user_otp import UserOtp, OtpPurpose

__all__ = [
    "User",
    "UserOtp",
    "OtpPurpose",
]
