import time
from datetime import datetime, timedelta, timezone

import platformdirs
import pytest
import requests

from chatdist.distribution.interfaces import DistributionRecord
from chatdist.distribution.store import DistributionStore

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp_path")
    config.addinivalue_line(
        "markers", "integration: tests that wire several components together"
    )


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and every chatdist environment variable at an isolated temp layout.

    Creates temp config, data and log directories, patches platformdirs user_* functions
    to return them, and clears environment overrides so a developer's shell settings
    cannot leak into load_config().
    """
    base = tmp_path_factory.mktemp("chatdist")
    config_dir = base / "config"
    data_dir = base / "data"
    log_dir = base / "log"

    for path in (config_dir, data_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_data_dir", lambda *_args, **_kwargs: str(data_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )

    from chatdist.config import ENV_OVERRIDES
    from chatdist.constants import CONFIG_FILE_ENV_VAR

    for env_var in list(ENV_OVERRIDES.values()) + [CONFIG_FILE_ENV_VAR]:
        monkeypatch.delenv(env_var, raising=False)


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.

    Tests that require real timing behavior should monkeypatch sleep back
    to the real implementation within the test.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


# =============================================================================
# Shared fixtures
# =============================================================================


@pytest.fixture
def store():
    """In-memory DistributionStore with tables created."""
    distribution_store = DistributionStore("sqlite:///:memory:")
    distribution_store.create_all()
    yield distribution_store
    distribution_store.dispose()


@pytest.fixture
def base_config(tmp_path):
    """A fully populated configuration dict, as load_config() would return it."""
    return {
        "HF_DATASETS_ID": "rwkv/chat-builds",
        "HF_TOKEN": "",
        "HF_ENDPOINT": "https://huggingface.co",
        "GITHUB_REPO": "RWKV-APP/RWKV_APP",
        "GITHUB_TOKEN": "",
        "PGYER_API_KEY": "pgyer-api-key",
        "PGYER_APP_KEY": "rwkvchat",
        "DATABASE_URL": "sqlite:///:memory:",
        "RELEASE_NOTES_DIR": str(tmp_path / "release-notes"),
        "RELEASE_NOTES_VERSION_LINES": ["3.3", "3.4", "3.5"],
        "DEFAULT_LOCALE": "en",
        "REFRESH_INTERVAL_MINUTES": 30,
        "REFRESH_ON_STARTUP": False,
        "HOST": "127.0.0.1",
        "PORT": 3462,
        "LOG_LEVEL": "INFO",
        "LOG_DIR": None,
    }


@pytest.fixture
def make_record():
    """
    Factory for DistributionRecord instances.

    `age_minutes` shifts created_at into the past so ordering by creation time
    can be controlled without touching a database.
    """
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def _make(
        record_id,
        version,
        build=None,
        age_minutes=0,
        dist_type="androidHF",
        url=None,
    ):
        created = now - timedelta(minutes=age_minutes)
        return DistributionRecord(
            id=record_id,
            type=dist_type,
            url=url or f"https://example.com/{record_id}",
            version=version,
            build=build,
            created_at=created,
            updated_at=created,
        )

    return _make
