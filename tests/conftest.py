"""
Pytest configuration and fixtures for EventForm tests.

This module provides shared fixtures for testing form sessions,
including temporary configuration files, an in-memory image host and
controllable chain fetchers.
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest
import yaml

from eventform.api_client import NotFoundError
from eventform.models import Chain, ImageResource, SessionUser, UserChain


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def temp_config_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for configuration files.

    Yields:
        Path to temporary configuration directory
    """
    with tempfile.TemporaryDirectory(prefix="eventform_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def form_config() -> dict:
    """Sample configuration values."""
    return {
        "server_url": "http://localhost:8084",
        "api_key": "key_test_1234567890abcdef",
        "user_uid": "usr_0001",
        "timezone": "UTC",
        "image_max_dimension": 800,
        "image_expiration_seconds": 3600,
        "request_timeout": 10.0,
        "log_level": "DEBUG",
    }


@pytest.fixture
def form_config_file(temp_config_dir: Path, form_config: dict) -> Path:
    """
    Write the sample configuration to a YAML file.

    Returns:
        Path to the configuration file
    """
    config_path = temp_config_dir / "eventform-config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(form_config, f)
    return config_path


@pytest.fixture
def clean_environment(monkeypatch) -> None:
    """Remove EventForm environment variables for test isolation."""
    for var in (
        "EVENTFORM_SERVER_URL",
        "EVENTFORM_API_KEY",
        "EVENTFORM_LOG_LEVEL",
        "EVENTFORM_CONFIG_PATH",
        "EVENTFORM_TIMEZONE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mock_server_url() -> str:
    return "http://localhost:8084"


@pytest.fixture
def mock_api_key() -> str:
    return "key_test_1234567890abcdef"


# ============================================================================
# Session Fixtures
# ============================================================================


@pytest.fixture
def session_user() -> SessionUser:
    """User administering chains a and c, member of b."""
    return SessionUser(
        uid="usr_0001",
        chains=[
            UserChain("chn_a", is_chain_admin=True),
            UserChain("chn_b", is_chain_admin=False),
            UserChain("chn_c", is_chain_admin=True),
        ],
    )


@pytest.fixture
def sample_chains() -> dict[str, Chain]:
    return {
        "chn_a": Chain(uid="chn_a", name="Loop A"),
        "chn_b": Chain(uid="chn_b", name="Loop B"),
        "chn_c": Chain(uid="chn_c", name="Loop C"),
    }


class FakeChainFetcher:
    """
    Chain fetch function with per-identifier delays and failures.

    Records the order in which fetches were started and completed, and
    how many had started when each one completed.
    """

    def __init__(self, chains: dict[str, Chain]):
        self.chains = chains
        self.delays: dict[str, float] = {}
        self.failures: dict[str, Exception] = {}
        self.started: list[str] = []
        self.completed: list[str] = []
        self.started_at_completion: list[int] = []

    async def __call__(self, uid: str) -> Chain:
        self.started.append(uid)
        await asyncio.sleep(self.delays.get(uid, 0))
        self.completed.append(uid)
        self.started_at_completion.append(len(self.started))
        if uid in self.failures:
            raise self.failures[uid]
        if uid not in self.chains:
            raise NotFoundError(f"Chain {uid} not found", status_code=404)
        return self.chains[uid]


@pytest.fixture
def chain_fetcher(sample_chains) -> FakeChainFetcher:
    return FakeChainFetcher(sample_chains)


class FakeImageHost:
    """
    In-memory image host.

    Hands out u1/d1, u2/d2, ... and records every upload and delete call.
    Set upload_error / delete_error to make the next calls fail, or
    upload_gate to hold uploads until the event is set.
    """

    def __init__(self):
        self.uploads: list[tuple[bytes, int, int]] = []
        self.deletes: list[str] = []
        self.upload_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None
        self.upload_gate: Optional[asyncio.Event] = None
        self._counter = 0

    async def upload(self, data: bytes, max_dimension: int, expiration_seconds: int) -> ImageResource:
        self.uploads.append((data, max_dimension, expiration_seconds))
        if self.upload_gate is not None:
            await self.upload_gate.wait()
        if self.upload_error is not None:
            raise self.upload_error
        self._counter += 1
        return ImageResource(public_url=f"u{self._counter}", delete_handle=f"d{self._counter}")

    async def delete(self, delete_handle: str) -> None:
        self.deletes.append(delete_handle)
        if self.delete_error is not None:
            raise self.delete_error


@pytest.fixture
def image_host() -> FakeImageHost:
    return FakeImageHost()


@pytest.fixture
def image_bytes() -> bytes:
    """A few bytes standing in for an image file."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
