import pytest

from devlog.app import create_app
from devlog.config import Config
from devlog.store import EntryStore


@pytest.fixture
def sample_entry():
    return {
        "sessionId": "sess-001",
        "time": "2024-01-15T10:30:00.000Z",
        "type": "console.log",
        "data": ["Button clicked", {"id": "submit"}],
    }


@pytest.fixture
def config(tmp_path):
    return Config(data_dir=str(tmp_path), self_check_timeout=2.0)


@pytest.fixture
def store(config):
    return EntryStore(config.log_path)


@pytest.fixture
def app(config, store):
    """Create a Flask test app backed by a temp-dir store."""
    application = create_app(config, store)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
