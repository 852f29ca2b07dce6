"""
认证业务异常

所有业务异常在检测点抛出，由 main.py 中的异常处理器统一转换为响应信封。
"""
from fastapi import status


class AuthError(Exception):
    """认证业务异常基类"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "AUTH_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UserAlreadyExistsError(AuthError):
    """邮箱已注册"""
    status_code = status.HTTP_409_CONFLICT
    error_code = "USER_ALREADY_EXISTS"


class UserNotFoundError(AuthError):
    """用户不存在"""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "USER_NOT_FOUND"


class InvalidCredentialsError(AuthError):
    """邮箱或密码错误（不区分具体原因）"""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidOtpError(AuthError):
    """验证码错误、过期或已使用（不区分具体原因）"""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_OTP"

    def __init__(self, message: str = "Invalid or expired OTP"):
        super().__init__(message)


class AccountDisabledError(AuthError):
    """账户已被禁用"""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "ACCOUNT_DISABLED"

    def __init__(self, message: str = "Account is disabled"):
        super().__init__(message)


class OtpIssueConflictError(AuthError):
    """并发请求同时生成验证码"""
    status_code = status.HTTP_409_CONFLICT
    error_code = "OTP_ISSUE_CONFLICT"

    def __init__(self, message: str = "A password reset request is already being processed, please retry"):
        super().__init__(message)
