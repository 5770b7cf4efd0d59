"""
Shared pytest fixtures and configuration for the QuickDrop test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A manual timer factory for deterministic expiry
- Recording notification sinks
- Transfer store and application fixtures
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

# Hypothesis configuration
from hypothesis import settings, HealthCheck, Phase

from quickdrop.config import ServerConfig
from quickdrop.domain.transfers import ExpiryScheduler, TransferStore
from quickdrop.infrastructure import LocalFileStorageRepository
from tests.fixtures.doubles import ManualTimerFactory, RecordingSink

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def timer_factory():
    """Provide a manual timer factory."""
    return ManualTimerFactory()


@pytest.fixture
def scheduler(timer_factory):
    """Provide an expiry scheduler driven by manual timers."""
    return ExpiryScheduler(timer_factory=timer_factory)


@pytest.fixture
def mock_storage():
    """
    Provide a mock storage repository for unit testing.

    Returns a Mock object with all IFileStorageRepository methods.
    """
    mock = Mock()
    mock.delete.return_value = True
    mock.exists.return_value = True
    mock.open.return_value = None
    return mock


@pytest.fixture
def store(mock_storage, scheduler):
    """Provide a transfer store backed by mock storage and manual timers."""
    return TransferStore(mock_storage, scheduler)


@pytest.fixture
def ttl():
    return timedelta(minutes=1)


@pytest.fixture
def storage_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def local_storage(storage_dir):
    """Provide a real local storage repository in a temp directory."""
    return LocalFileStorageRepository(str(storage_dir))


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def server_config(tmp_path):
    """Provide a server configuration isolated from the environment."""
    config = ServerConfig()
    config.upload_password = "secret"
    config.is_default_password = False
    config.upload_dir = str(tmp_path / "uploads")
    config.max_file_size_mb = 1
    config.file_expiry_minutes = 1
    config.cors_origins = "*"
    config.log_level = "WARNING"
    config.socketio_enabled = True
    return config


@pytest.fixture
def app(server_config, scheduler):
    """Provide a fully wired application with manual expiry timers."""
    from app_factory import create_app

    app = create_app(server_config, scheduler=scheduler)
    app.config["TESTING"] = True
    yield app
    app.transfer_store.close()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (full application)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
