"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from core.config import Settings, get_settings
from services.backend import BackendService
from services.live_pages import LivePageRegistry, get_live_pages
from services.navigation import Navigator
from tests.fakes import FakeBackend, make_session


@pytest.fixture
def settings() -> Settings:
    """Settings that never read the local .env file."""
    return Settings(
        _env_file=None,
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_ANON_KEY="anon-key",
    )


@pytest.fixture
def backend() -> FakeBackend:
    """A fake backend with a signed-in user."""
    return FakeBackend(session=make_session())


@pytest.fixture
def signed_out_backend() -> FakeBackend:
    """A fake backend without a session."""
    return FakeBackend(session=None)


@pytest.fixture
def navigator() -> Navigator:
    """A navigator that only records redirects."""
    return Navigator("/login")


@pytest.fixture
def live_pages() -> LivePageRegistry:
    """An empty live page registry, isolated from the process-wide one."""
    return LivePageRegistry()


@pytest.fixture
async def client(
    backend: FakeBackend,
    settings: Settings,
    live_pages: LivePageRegistry,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client whose requests all hit the fake backend."""
    get_settings.cache_clear()

    from api.main import app  # noqa: PLC0415
    from core.auth import get_backend_factory  # noqa: PLC0415

    def override_get_backend_factory():  # noqa: ANN202
        async def factory(
            access_token: str | None,  # noqa: ARG001
            refresh_token: str | None,  # noqa: ARG001
        ) -> BackendService:
            return backend

        return factory

    app.dependency_overrides[get_backend_factory] = override_get_backend_factory
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_live_pages] = lambda: live_pages

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
