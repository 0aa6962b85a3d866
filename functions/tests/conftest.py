"""Pytest configuration and shared fixtures for SparkQuote tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock, patch


# ============================================================================
# Ensure local imports work (agents/, models/, services/, config/)
# ============================================================================
#
# Our codebase uses absolute imports like `from models...` / `from agents...`.
# This guarantees that `functions/` is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_chat_openai():
    """Mock ChatOpenAI client."""
    mock = AsyncMock()
    mock.ainvoke.return_value = MagicMock(
        content="Mock response content",
        response_metadata={"token_usage": {"total_tokens": 100}}
    )
    return mock


@pytest.fixture
def mock_llm_service(mock_chat_openai):
    """LLMService with a mocked ChatOpenAI client."""
    from services.llm_service import LLMService

    with patch('services.llm_service.ChatOpenAI', return_value=mock_chat_openai):
        service = LLMService(api_key="test-api-key")
        service._client = mock_chat_openai
        return service


@pytest.fixture
def fake_llm():
    """Stand-in for LLMService whose generate() reply is set per test."""
    llm = MagicMock()
    llm.generate = AsyncMock(return_value="")
    llm.total_tokens_used = 0
    return llm


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def kitchen_description():
    """Sample job description."""
    return "Install two double sockets in a kitchen"


@pytest.fixture
def kitchen_questions():
    """Validated questions matching the kitchen description."""
    from models.quote import ClarifyingQuestion

    return [
        ClarifyingQuestion(
            question="Installation method?",
            options=["Surface trunking", "Chased into wall", "Other"]
        ),
        ClarifyingQuestion(
            question="Property type?",
            options=["House", "Flat", "Other"]
        ),
    ]


@pytest.fixture
def kitchen_session(kitchen_description, kitchen_questions):
    """Session awaiting answers for the kitchen job."""
    from agents.session import QuoteSession

    return QuoteSession(kitchen_description, kitchen_questions)


# ============================================================================
# Environment Setup
# ============================================================================

@pytest.fixture(autouse=True)
def mock_settings(monkeypatch):
    """Pin settings for all tests without touching real secrets."""
    from config.settings import settings

    monkeypatch.setattr(settings, "_openai_api_key", "test-api-key")
    monkeypatch.setattr(settings, "llm_model", "gpt-3.5-turbo")
    monkeypatch.setattr(settings, "llm_temperature", 0.2)
    monkeypatch.setattr(settings, "clarification_max_tokens", 400)
    monkeypatch.setattr(settings, "estimation_max_tokens", 1200)
    monkeypatch.setattr(settings, "time_estimate_max_tokens", 10)
    monkeypatch.setattr(settings, "max_clarifying_questions", 5)
    monkeypatch.setattr(settings, "default_hourly_rate", 50.0)
    yield settings
