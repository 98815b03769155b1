import asyncio
import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
# The remote content service is exercised through httpx.MockTransport only
os.environ["CONTENT_API_ENABLED"] = "false"
test_data_dir = ROOT / "artifacts" / "test-data"
test_data_dir.mkdir(parents=True, exist_ok=True)
os.environ["DATA_DIR"] = str(test_data_dir)

from backend.app.api.routes import preferences as preferences_routes  # noqa: E402
from backend.app.db.core import get_session  # noqa: E402
from backend.app.db.models import (  # noqa: E402
    AnalyticsRecord,
    BlogPostRecord,
    BusinessRecord,
    CategoryRecord,
    ReviewRecord,
    SavedBusinessRecord,
)
from backend.app.main import app  # noqa: E402
from backend.app.preferences import InMemoryKeyValueStore, ThemePreferences  # noqa: E402
from backend.app.service import service  # noqa: E402
from backend.app.settings import settings  # noqa: E402
from sqlalchemy import delete  # noqa: E402

_PURGE_ORDER = (
    AnalyticsRecord,
    SavedBusinessRecord,
    ReviewRecord,
    BlogPostRecord,
    BusinessRecord,
    CategoryRecord,
)


async def _purge_tables_async() -> None:
    async with get_session() as session:
        for model in _PURGE_ORDER:
            await session.execute(delete(model))
        await session.commit()


def _purge_tables() -> None:
    asyncio.run(_purge_tables_async())


def run_and_drain(coro):
    """Run a coroutine on a fresh loop and let its analytics tasks finish first."""

    async def _main():
        try:
            return await coro
        finally:
            await service.analytics.drain()

    return asyncio.run(_main())


@pytest.fixture(scope="session")
def client() -> TestClient:
    # entering the client keeps one event loop alive for the whole session, so
    # fire-and-forget analytics tasks started by requests get to finish
    with TestClient(app, base_url="http://api.testserver") as test_client:
        yield test_client


@pytest.fixture
def run():
    return run_and_drain


@pytest.fixture
def theme_prefs() -> ThemePreferences:
    prefs = ThemePreferences(InMemoryKeyValueStore())
    app.dependency_overrides[preferences_routes.get_theme_preferences] = lambda: prefs
    yield prefs
    app.dependency_overrides.pop(preferences_routes.get_theme_preferences, None)


@pytest.fixture(autouse=True)
def clean_directory() -> None:
    settings.SENTRY_DSN = None
    settings.CONTENT_API_ENABLED = False
    service.reset()
    service.content.breaker.reset()
    _purge_tables()
    yield
    service.reset()
    _purge_tables()
