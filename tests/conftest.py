from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from quickprompt.core.config import settings

# Override settings for tests
settings.app_env = "test"
settings.provider_timeout_seconds = 5.0

from quickprompt.core.rate_limit import limiter  # noqa: E402
from quickprompt.main import app  # noqa: E402

limiter.enabled = False


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
