from unittest.mock import patch

import pytest

from config import settings
from main import app
from routers import rate_limit
from services.storage import MemoryStorage, get_storage


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Rate limits off and local counters empty for every test."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture
def upload_dir(tmp_path):
    root = tmp_path / "uploads"
    with patch.object(settings, "UPLOAD_DIR", str(root)):
        yield root


@pytest.fixture
def memory_storage():
    """Fresh in-memory storage wired into the app for one test."""
    storage = MemoryStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_storage, None)
