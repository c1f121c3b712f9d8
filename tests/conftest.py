"""
Shared pytest fixtures and configuration for the OnceDrop test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Directory-based test markers
- Shared fixtures for clocks, in-memory adapters and the lifecycle controller
"""

from datetime import datetime, timezone

import pytest

# Hypothesis configuration
from hypothesis import HealthCheck, Phase, settings

from oncedrop.domain.transfers import TokenLifecycleController
from tests.fixtures.mock_repositories import (
    FakeClock,
    InMemoryObjectStore,
    InMemoryTokenRecordRepository,
)

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
# Domain Fixtures
# =============================================================================

@pytest.fixture
def start_time() -> datetime:
    """Fixed issuance instant used across controller tests."""
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(start_time) -> FakeClock:
    return FakeClock(start_time)


@pytest.fixture
def pdf_payload() -> bytes:
    """Opaque stand-in for client-side ciphertext."""
    return b"\x8a\x01ciphertext\x00\xff" * 64


# =============================================================================
# Adapter Fixtures
# =============================================================================

@pytest.fixture
def record_repository() -> InMemoryTokenRecordRepository:
    return InMemoryTokenRecordRepository()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def controller(record_repository, object_store, clock) -> TokenLifecycleController:
    """Lifecycle controller wired to in-memory adapters and a fake clock."""
    return TokenLifecycleController(record_repository, object_store, clock=clock)


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
    config.addinivalue_line(
        "markers", "contract: Contract tests (verify interface compliance)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests (full workflows)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/contracts/* -> @pytest.mark.contract
    - tests/e2e/* -> @pytest.mark.e2e
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/contracts/" in test_path or "\\contracts\\" in test_path:
            item.add_marker(pytest.mark.contract)
        elif "/e2e/" in test_path or "\\e2e\\" in test_path:
            item.add_marker(pytest.mark.e2e)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
