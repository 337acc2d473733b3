import shutil
from pathlib import Path

import pytest

from backend import sessions, storage

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe and re-init data-tests/ and drop sessions before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    storage.init_storage(TEST_DATA_DIR)
    sessions.reset_sessions()
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture
def echo_enabled():
    """Switch the assistant on with the offline echo model."""
    storage.update_config({"intelligence": {"enabled": True, "provider": "echo"}})
