"""
认证相关 Schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


def _not_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value


class SignupRequest(BaseModel):
    """注册请求"""
    name: str = Field(max_length=100)
    email: EmailStr
    password: str = Field(max_length=72)
    phone: str = Field(max_length=20)

    @field_validator("name", "phone")
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _not_blank(value).strip()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _not_blank(value)


class LoginRequest(BaseModel):
    """登录请求"""
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _not_blank(value)


class ForgotPasswordRequest(BaseModel):
    """忘记密码请求"""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """重置密码请求"""
    email: EmailStr
    otp: str = Field(min_length=1, max_length=10, pattern=r"^\d+$")
    new_password: str = Field(alias="newPassword", max_length=72)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _not_blank(value)

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    """用户信息响应（不含密码）"""
    id: str
    name: str
    email: str
    phone: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuthData(BaseModel):
    """注册/登录响应数据"""
    user: UserResponse
    token: str
    token_type: str = "bearer"
