"""
通用响应 Schemas
"""
from datetime import datetime
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, Field

from app.utils.timezone import utc_now_naive

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """统一响应信封"""
    success: bool
    message: str
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=utc_now_naive)

    @classmethod
    def ok(cls, message: str, data: Optional[T] = None) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str, data: Optional[T] = None) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=data)
