"""Global pytest configuration and fixtures."""

import json
from collections.abc import Generator
from logging import Logger
from pathlib import Path

import pytest
from pytest_httpserver import HTTPServer
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import Session
from werkzeug.wrappers import Request, Response

from modelviz import setup_test_logging
from modelviz.database.engine import create_database_tables
from modelviz.services import MetricsAggregator

from tests.utils.test_helpers import FakeProvider


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Setup test logging for all tests."""
    setup_test_logging()


@pytest.fixture(scope="function")
def logger() -> Logger:
    from modelviz import get_logger

    return get_logger("test")


@pytest.fixture
def mock_openai_server(httpserver: HTTPServer) -> HTTPServer:
    """Mock OpenAI-compatible chat completions endpoint.

    The model name ``broken-model`` gets a 500; everything else gets the
    canned text response with the requested model echoed back.
    """
    example_path = Path("tests", "assets", "openai_responses.json")
    with open(example_path, "r") as f:
        openai_responses = json.load(f)

    def chat_completion_handler(request: Request) -> Response:
        body = json.loads(request.data.decode("utf-8"))
        if body.get("model") == "broken-model":
            return Response(
                json.dumps(openai_responses["server_error"]),
                status=500,
                headers={"Content-Type": "application/json"},
            )

        response_data = dict(openai_responses["text_response"])
        response_data["model"] = body.get("model")
        return Response(
            json.dumps(response_data),
            status=200,
            headers={"Content-Type": "application/json"},
        )

    httpserver.expect_request(
        "/v1/chat/completions",
        method="POST",
    ).respond_with_handler(chat_completion_handler)

    return httpserver


@pytest.fixture(scope="function")
def mock_db_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Create a real database engine for testing using a file-based database."""
    db_path = tmp_path / "test.db"
    database_url = f"sqlite:///{db_path}"

    engine = create_engine(
        database_url,
        echo=False,
        connect_args={
            "check_same_thread": False,
            "timeout": 60.0,
        },
    )
    create_database_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def mock_db_session(mock_db_engine: Engine) -> Generator[Session, None, None]:
    with Session(mock_db_engine) as session:
        yield session


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def aggregator() -> MetricsAggregator:
    """In-memory aggregator without a backing store."""
    return MetricsAggregator()
