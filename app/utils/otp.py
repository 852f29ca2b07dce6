"""
一次性验证码生成
"""
import secrets


def generate_otp(length: int = 6) -> str:
    """生成定长数字验证码（使用 secrets 安全随机源）"""
    if length <= 0:
        raise ValueError("OTP length must be positive")
    return "".join(secrets.choice("0123456789") for _ in range(length))
