"""Pytest configuration and fixtures for tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tasador.llm.factory import get_llm_provider
from tasador.main import app
from tasador.schemas.valuation import RawModelResponse


@pytest.fixture
def fake_llm() -> MagicMock:
    """An LLM provider whose ``complete`` answers with empty content by default."""
    llm = MagicMock()
    llm.provider_name = "fake"
    llm.model_name = "fake-model"
    llm.complete = AsyncMock(return_value=RawModelResponse(content=""))
    return llm


@pytest.fixture
def client(fake_llm: MagicMock):
    """TestClient with the provider dependency replaced by ``fake_llm``."""
    app.dependency_overrides[get_llm_provider] = lambda: fake_llm
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
