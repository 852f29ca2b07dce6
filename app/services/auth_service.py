"""
认证服务 - 注册、登录、忘记密码、重置密码

此服务提供：
1. 注册时的邮箱判重与密码哈希
2. 登录校验（未知邮箱与错误密码返回同一错误）
3. 密码重置验证码的生成、失效与一次性消费

使用方式:
    service = AuthService.from_session(db)
    result = await service.login(email, password)
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import (
    AccountDisabledError,
    InvalidCredentialsError,
    InvalidOtpError,
    OtpIssueConflictError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from app.models.user import User
from app.models.user_otp import UserOtp, OtpPurpose
from app.repositories.otp_repository import UserOtpRepository
from app.repositories.user_repository import UserRepository
from app.services.notification_service import sanitize_log_input
from app.utils.metrics import AUTH_EVENTS
from app.utils.otp import generate_otp
from app.utils.security import (
    create_access_token,
    dummy_verify,
    get_password_hash,
    verify_password,
)
from app.utils.timezone import utc_now_naive

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """注册/登录结果"""
    message: str
    user: User
    token: str


@dataclass
class PasswordResetIssued:
    """已生成的重置验证码，仅供投递通道使用，不得写入响应"""
    user: User
    otp: UserOtp
    expire_minutes: int


class AuthService:
    """
    认证服务类

    依赖通过构造函数注入，便于在测试中替换仓储和时钟。
    """

    def __init__(
        self,
        users: UserRepository,
        otps: UserOtpRepository,
        clock: Callable[[], datetime] = utc_now_naive,
    ):
        self.users = users
        self.otps = otps
        self.clock = clock

    @classmethod
    def from_session(cls, db: AsyncSession) -> "AuthService":
        return cls(UserRepository(db), UserOtpRepository(db))

    async def signup(self, name: str, email: str, password: str, phone: str) -> AuthResult:
        """
        用户注册

        Raises:
            UserAlreadyExistsError: 邮箱已注册
        """
        logger.info("Processing signup request for email: %s", sanitize_log_input(email))

        if await self.users.exists_by_email(email):
            AUTH_EVENTS.labels("signup", "conflict").inc()
            raise UserAlreadyExistsError(f"User with email {email} already exists")

        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            phone=phone,
            is_active=True,
        )
        try:
            user = await self.users.save(user)
        except IntegrityError:
            # 并发注册同一邮箱，由唯一约束兜底
            AUTH_EVENTS.labels("signup", "conflict").inc()
            raise UserAlreadyExistsError(f"User with email {email} already exists")

        logger.info("User registered successfully with ID: %s", user.id)
        AUTH_EVENTS.labels("signup", "success").inc()

        return AuthResult(
            message="User registered successfully",
            user=user,
            token=create_access_token(user.email),
        )

    async def login(self, email: str, password: str) -> AuthResult:
        """
        用户登录

        Raises:
            InvalidCredentialsError: 邮箱不存在或密码错误（不区分）
            AccountDisabledError: 密码正确但账户已禁用
        """
        logger.info("Processing login request for email: %s", sanitize_log_input(email))

        user = await self.users.get_by_email(email)
        if not user:
            dummy_verify()
            AUTH_EVENTS.labels("login", "invalid_credentials").inc()
            raise InvalidCredentialsError()

        if not verify_password(password, user.password_hash):
            AUTH_EVENTS.labels("login", "invalid_credentials").inc()
            raise InvalidCredentialsError()

        if not user.is_active:
            AUTH_EVENTS.labels("login", "disabled").inc()
            raise AccountDisabledError()

        logger.info("User logged in successfully: %s", user.id)
        AUTH_EVENTS.labels("login", "success").inc()

        return AuthResult(
            message="Login successful",
            user=user,
            token=create_access_token(user.email),
        )

    async def forgot_password(self, email: str) -> PasswordResetIssued:
        """
        生成密码重置验证码

        先删除该用户已有的重置验证码，再保存新验证码，两步在同一事务内完成。

        Raises:
            UserNotFoundError: 邮箱未注册
            OtpIssueConflictError: 并发请求同时生成验证码
        """
        logger.info("Processing forgot password request for email: %s", sanitize_log_input(email))

        user = await self.users.get_by_email(email)
        if not user:
            AUTH_EVENTS.labels("forgot_password", "not_found").inc()
            raise UserNotFoundError(f"User not found with email: {email}")

        purpose = OtpPurpose.PASSWORD_RESET
        expire_minutes = settings.otp_expire_minutes

        await self.otps.invalidate_all(user.id, purpose)
        try:
            otp = await self.otps.issue(
                user.id,
                purpose,
                generate_otp(settings.otp_length),
                timedelta(minutes=expire_minutes),
                self.clock(),
            )
        except IntegrityError:
            AUTH_EVENTS.labels("forgot_password", "conflict").inc()
            raise OtpIssueConflictError()

        logger.info("Password reset OTP generated for user: %s", user.id)
        AUTH_EVENTS.labels("forgot_password", "success").inc()

        return PasswordResetIssued(user=user, otp=otp, expire_minutes=expire_minutes)

    async def reset_password(self, email: str, code: str, new_password: str) -> str:
        """
        使用验证码重置密码，成功后验证码标记为已使用

        Raises:
            UserNotFoundError: 邮箱未注册
            InvalidOtpError: 验证码错误、过期或已使用
        """
        logger.info("Processing reset password request for email: %s", sanitize_log_input(email))

        user = await self.users.get_by_email(email)
        if not user:
            AUTH_EVENTS.labels("reset_password", "not_found").inc()
            raise UserNotFoundError(f"User not found with email: {email}")

        otp = await self.otps.consume(user.id, code, OtpPurpose.PASSWORD_RESET, self.clock())
        if not otp:
            AUTH_EVENTS.labels("reset_password", "invalid_otp").inc()
            raise InvalidOtpError()

        # 先占用验证码再改密码，并发请求中只有一个能通过
        if not await self.otps.mark_used(otp):
            AUTH_EVENTS.labels("reset_password", "invalid_otp").inc()
            raise InvalidOtpError()

        user.password_hash = get_password_hash(new_password)
        await self.users.save(user)

        logger.info("Password reset successfully for user: %s", user.id)
        AUTH_EVENTS.labels("reset_password", "success").inc()

        return "Password has been reset successfully"
