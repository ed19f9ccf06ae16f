"""Common fixtures for integration tests."""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.app import create_app
from api.services.app_initializer import AppServiceInitializer
from modelviz.config import load_settings
from modelviz.log import get_logger

from tests.utils.test_helpers import FakeProvider, ScriptedReply, failing_reply

logger = get_logger(__name__)


@pytest.fixture
def integration_provider() -> FakeProvider:
    """Scripted backend shared by every integration test."""
    return FakeProvider(
        replies={
            "alpha": ScriptedReply(
                text="Caching keeps hot data in memory. It avoids slow lookups.",
                cost=0.002,
            ),
            "beta": ScriptedReply(text="A cache stores results.", delay=0.02),
            "broken": failing_reply("quota exceeded"),
            "down": failing_reply("service unavailable"),
        }
    )


@pytest_asyncio.fixture
async def integration_client(
    mock_db_engine: Engine,
    integration_provider: FakeProvider,
) -> AsyncGenerator[TestClient, None]:
    """Create a test client using AppServiceInitializer with mock dependencies."""

    # Set environment to testing for integration tests
    os.environ["MODELVIZ_ENV"] = "testing"

    app = create_app()
    settings = load_settings()

    initializer = AppServiceInitializer(settings)
    await initializer.initialize_all_services(
        app=app,
        engine=mock_db_engine,
        adapter=integration_provider,
    )

    yield TestClient(app)
