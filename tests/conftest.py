"""Shared test fixtures and configuration for all tests."""

import pytest

from structured_inference.config import ProviderConfig, Settings
from structured_inference.models.messages import Message


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.GENERATION_MAX_ATTEMPTS = 1
    """
    return Settings(
        # === Application ===
        APP_NAME="Structured Inference (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        # === Providers ===
        PROVIDERS=[
            ProviderConfig(
                provider_id="primary",
                kind="openai",
                base_url="https://primary.test/v1",
                model="gpt-4o-mini",
                api_key="sk-primary",
            ),
            ProviderConfig(
                provider_id="local",
                kind="ollama",
                base_url="http://localhost:11434",
                model="qwen2.5:7b",
            ),
        ],
        # === Retry ===
        DELIVERY_MAX_RETRIES=3,
        DELIVERY_BACKOFF_BASE=0.0,
        GENERATION_MAX_ATTEMPTS=3,
        GENERATION_RETRY_DELAY=0.0,
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def conversation() -> list[Message]:
    """Short practice conversation with a caller-supplied system turn."""
    return [
        Message.system("You are a helpful assistant."),
        Message.user("hi i want know why my order late"),
        Message.assistant("I'm sorry to hear that. Could you share your order number?"),
        Message.user("its 4521"),
    ]
