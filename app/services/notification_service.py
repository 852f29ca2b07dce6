"""
验证码通知服务

验证码生成是内部事件，由通知通道负责投递，HTTP 响应中不包含验证码。
当前未接入真实的邮件/短信通道。
"""
import logging
from typing import Protocol

from app.config import get_settings


settings = get_settings()
logger = logging.getLogger(__name__)


def sanitize_log_input(email: str) -> str:
    """清理邮箱地址用于日志记录，防止日志注入"""
    if not email:
        return "(empty)"
    # 移除潜在的换行符和其他控制字符
    return ''.join(char for char in email if char.isprintable())[:100]


class OtpNotifier(Protocol):
    """验证码投递通道"""

    def send_password_reset_code(self, to_email: str, code: str) -> bool:
        ...


class LoggingOtpNotifier:
    """
    仅记录日志的投递通道

    开发环境下输出验证码便于联调，其他环境只记录事件本身。
    """

    def send_password_reset_code(self, to_email: str, code: str) -> bool:
        if settings.is_development():
            logger.warning(
                "Development mode, password reset code for %s: %s",
                sanitize_log_input(to_email),
                code,
            )
        else:
            logger.info(
                "Password reset code issued for %s, no delivery channel configured",
                sanitize_log_input(to_email),
            )
        return False


def get_otp_notifier() -> OtpNotifier:
    """验证码投递依赖（测试中可通过 dependency_overrides 替换）"""
    return LoggingOtpNotifier()
