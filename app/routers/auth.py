"""
认证路由：注册、登录、忘记密码、重置密码
"""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.schemas.auth import (
    AuthData,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
    UserResponse,
)
from app.schemas.common import ApiResponse
from app.services.auth_service import AuthResult, AuthService
from app.services.notification_service import OtpNotifier, get_otp_notifier, sanitize_log_input
from app.utils.security import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService.from_session(db)


def _auth_data(result: AuthResult) -> AuthData:
    return AuthData(
        user=UserResponse.model_validate(result.user),
        token=result.token,
    )


@router.post(
    "/signup",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    data: SignupRequest,
    service: AuthService = Depends(get_auth_service),
):
    """用户注册"""
    logger.info("Received signup request for email: %s", sanitize_log_input(data.email))
    result = await service.signup(data.name, data.email, data.password, data.phone)
    return ApiResponse[AuthData].ok(result.message, _auth_data(result))


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """用户登录"""
    logger.info("Received login request for email: %s", sanitize_log_input(data.email))
    result = await service.login(data.email, data.password)
    return ApiResponse[AuthData].ok(result.message, _auth_data(result))


@router.post("/forgot-password", response_model=ApiResponse[str])
async def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
    notifier: OtpNotifier = Depends(get_otp_notifier),
):
    """生成密码重置验证码，验证码交给通知通道投递，不在响应中返回"""
    logger.info("Received forgot password request for email: %s", sanitize_log_input(data.email))
    issued = await service.forgot_password(data.email)

    # 响应返回后再投递
    background_tasks.add_task(
        notifier.send_password_reset_code, issued.user.email, issued.otp.otp
    )

    return ApiResponse[str].ok(
        f"Password reset OTP has been sent to your email (valid for {issued.expire_minutes} minutes)"
    )


@router.post("/reset-password", response_model=ApiResponse[str])
async def reset_password(
    data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    """通过验证码重置密码"""
    logger.info("Received reset password request for email: %s", sanitize_log_input(data.email))
    message = await service.reset_password(data.email, data.otp, data.new_password)
    return ApiResponse[str].ok(message)


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(current_user: User = Depends(get_current_user)):
    """获取当前用户信息"""
    return ApiResponse[UserResponse].ok("OK", UserResponse.model_validate(current_user))


@router.get("/health", response_model=ApiResponse[str])
async def health():
    """健康检查"""
    return ApiResponse[str].ok("OK", "Auth service is running")
