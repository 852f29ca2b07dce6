"""
统一时区处理模块

- 数据库存储 UTC 时间（不带时区信息的 naive datetime）
- 应用层使用本模块的辅助函数获取当前时间
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    获取当前 UTC 时间

    Returns:
        带时区信息的 datetime 对象（用于 JWT 等需要明确时区的场景）
    """
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """
    获取当前 UTC 时间（naive，不带时区信息）

    这是数据库存储的标准格式

    Returns:
        不带时区信息的 naive datetime 对象
    """
    return utc_now().replace(tzinfo=None)
