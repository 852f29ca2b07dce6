"""
一次性验证码模型
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index, false
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from app.utils.timezone import utc_now_naive


class OtpPurpose(str, Enum):
    """验证码用途"""
    PASSWORD_RESET = "PASSWORD_RESET"


class UserOtp(Base):
    """用户验证码表"""
    __tablename__ = "user_otp"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    otp: Mapped[str] = mapped_column(String(10))
    purpose: Mapped[str] = mapped_column(String(30))
    expires_at: Mapped[datetime] = mapped_column(DateTime)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now_naive
    )

    user = relationship("User", back_populates="otps")


# 同一用户同一用途最多只能存在一条未使用的验证码
Index(
    "uq_user_otp_active",
    UserOtp.user_id,
    UserOtp.purpose,
    unique=True,
    postgresql_where=UserOtp.is_used == false(),
    sqlite_where=UserOtp.is_used == false(),
)
