"""
验证码数据访问

调用约定：
    repo = UserOtpRepository(db)
    await repo.invalidate_all(user_id, purpose)
    otp = await repo.issue(user_id, purpose, code, ttl, now)
    ...
    otp = await repo.consume(user_id, code, purpose, now)  # 仅查询，不修改 is_used
    if await repo.mark_used(otp): ...
"""
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select, delete, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_otp import UserOtp, OtpPurpose


class UserOtpRepository:
    """验证码仓储"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def invalidate_all(self, user_id: str, purpose: OtpPurpose) -> int:
        """
        删除该用户该用途的全部验证码（幂等）

        Returns:
            删除的记录数
        """
        result = await self.db.execute(
            delete(UserOtp).where(
                and_(
                    UserOtp.user_id == user_id,
                    UserOtp.purpose == purpose.value,
                )
            )
        )
        return result.rowcount or 0

    async def issue(
        self,
        user_id: str,
        purpose: OtpPurpose,
        code: str,
        ttl: timedelta,
        now: datetime,
    ) -> UserOtp:
        """
        保存新验证码，过期时间为 now + ttl

        必须在同一事务内先调用 invalidate_all，否则会触发唯一索引冲突。
        """
        user_otp = UserOtp(
            user_id=user_id,
            otp=code,
            purpose=purpose.value,
            expires_at=now + ttl,
            is_used=False,
            created_at=now,
        )
        self.db.add(user_otp)
        await self.db.flush()
        return user_otp

    async def consume(
        self,
        user_id: str,
        code: str,
        purpose: OtpPurpose,
        now: datetime,
    ) -> Optional[UserOtp]:
        """
        查找匹配且未使用、未过期的验证码

        不区分失败原因（错误、过期、已使用、用途不符），统一返回 None。
        本方法不会修改 is_used，由调用方标记并保存。
        """
        result = await self.db.execute(
            select(UserOtp).where(
                and_(
                    UserOtp.user_id == user_id,
                    UserOtp.otp == code,
                    UserOtp.purpose == purpose.value,
                    UserOtp.is_used == False,  # noqa: E712
                    UserOtp.expires_at > now,
                )
            ).order_by(UserOtp.created_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def mark_used(self, user_otp: UserOtp) -> bool:
        """
        将验证码标记为已使用（条件更新，仅当仍未使用时生效）

        并发请求查到同一条验证码时只有一个能标记成功。

        Returns:
            是否由本次调用完成标记
        """
        result = await self.db.execute(
            update(UserOtp)
            .where(
                and_(
                    UserOtp.id == user_otp.id,
                    UserOtp.is_used == False,  # noqa: E712
                )
            )
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.db.refresh(user_otp)
        return True
