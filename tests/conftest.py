"""Test fixtures for OpenRouter launcher tests."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, Mock, patch
import pytest

from openrouter_launch import LauncherConfig, ModelCacheStore, ModelRecord


@pytest.fixture
def mock_api_response():
    """Mock /models response: two usable models plus entries that must be filtered out."""
    return {
        "data": [
            {
                "id": "openai/gpt-4o",
                "pricing": {"prompt": "0.0000025", "completion": "0.00001"}
            },
            {
                "id": "anthropic/claude-sonnet-4",
                "pricing": {"prompt": "0.000003", "completion": "0.000015"}
            },
            {
                "id": "meta-llama/llama-3.3-70b-instruct:free",
                "pricing": {"prompt": "0", "completion": "0"}
            },
            {
                "id": "acme/half-priced",
                "pricing": {"prompt": "0.000001"}
            }
        ]
    }


@pytest.fixture
def sample_models():
    """Sample ModelRecord instances for testing."""
    return [
        ModelRecord("anthropic/claude-sonnet-4", Decimal("3"), Decimal("15")),
        ModelRecord("openai/gpt-4o", Decimal("2.5"), Decimal("10")),
    ]


@pytest.fixture
def sample_config():
    """Sample LauncherConfig for testing."""
    return LauncherConfig(
        api_key="sk-or-v1-test-key-1234567890",
        default_model="anthropic/claude-sonnet-4",
    )


@pytest.fixture
def cache_path(tmp_path):
    """Cache file location inside a not-yet-created directory."""
    return tmp_path / "cache" / "openrouter" / "models.txt"


@pytest.fixture
def cache_store(cache_path):
    return ModelCacheStore(cache_path)


@pytest.fixture
def temp_config_file(tmp_path):
    """Temporary config file for testing."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "api_key": "sk-or-v1-saved-key-1234567890",
        "default_model": "openai/gpt-4o",
        "data_collection": "deny",
        "provider_sort": "price"
    }))
    return path


@pytest.fixture
def make_response():
    """Factory for mocked httpx responses."""
    def _make(status_code=200, payload=None):
        response = Mock()
        response.status_code = status_code
        response.json.return_value = payload
        return response
    return _make


@pytest.fixture
def mock_httpx():
    """Patch httpx.AsyncClient; yields (client_class, client) for configuring responses."""
    with patch('httpx.AsyncClient') as mock_client_class:
        mock_client = AsyncMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client
        yield mock_client_class, mock_client


@pytest.fixture
def mock_subprocess():
    """Mock subprocess and PATH lookups for launch testing."""
    with patch('openrouter_launch.subprocess') as mock_sub, \
            patch('openrouter_launch.command_exists', return_value=True):
        mock_sub.run.return_value = Mock(returncode=0)
        yield mock_sub


@pytest.fixture
def mock_environment():
    """Mock environment variables."""
    with patch.dict('os.environ', {'OPENROUTER_API_KEY': 'sk-or-v1-env-key-1234567890'}, clear=False):
        yield
