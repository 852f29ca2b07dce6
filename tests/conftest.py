import os
import tempfile

# 必须在导入 app 之前设置，get_settings() 会缓存首次读取的配置
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"auth_system_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters"

import pytest
from httpx import AsyncClient, ASGITransport

from app.database import AsyncSessionLocal, Base, engine
from app.models import User, UserOtp  # noqa: F401


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_setup():
    """每个测试使用全新的表结构"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture
async def db_session(db_setup):
    async with AsyncSessionLocal() as session:
        yield session


class RecordingNotifier:
    """记录投递的验证码，替代真实通知通道"""

    def __init__(self) -> None:
        self.sent = []

    def send_password_reset_code(self, to_email: str, code: str) -> bool:
        self.sent.append((to_email, code))
        return True

    def last_code_for(self, email: str) -> str:
        codes = [code for to_email, code in self.sent if to_email == email]
        assert codes, f"no code sent to {email}"
        return codes[-1]


@pytest.fixture
def notifier():
    from app.main import app
    from app.services.notification_service import get_otp_notifier

    recorder = RecordingNotifier()
    app.dependency_overrides[get_otp_notifier] = lambda: recorder
    try:
        yield recorder
    finally:
        app.dependency_overrides.pop(get_otp_notifier, None)


@pytest.fixture
async def client(db_setup, notifier):
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
