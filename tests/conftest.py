import pytest
from fastapi.testclient import TestClient

from slinker.core.config import Settings
from slinker.core.security import issue_session_token
from slinker.main import create_app
from slinker.services.link_store import InMemoryLinkStore, SqlLinkStore


OWNER_A = "alice@example.com"
OWNER_B = "bob@example.com"


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url=None,
        redis_url=None,
        github_client_id=None,
        github_client_secret=None,
        public_base_url=None,
        session_secret="test-session-secret",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(params=["memory", "sqlite"])
def settings(request, tmp_path) -> Settings:
    """
    Every HTTP test runs against both storage backends.
    The SQL one uses a throwaway SQLite file per test.
    """
    if request.param == "sqlite":
        return make_settings(database_url=f"sqlite:///{tmp_path / 'links.db'}")
    return make_settings()


@pytest.fixture()
def client(settings: Settings):
    app = create_app(settings)
    # Context manager runs the lifespan, which builds and closes the store.
    with TestClient(app) as c:
        yield c


def auth_headers(settings: Settings, email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_session_token(settings, email)}"}


@pytest.fixture()
def auth_a(settings: Settings) -> dict[str, str]:
    return auth_headers(settings, OWNER_A)


@pytest.fixture()
def auth_b(settings: Settings) -> dict[str, str]:
    return auth_headers(settings, OWNER_B)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "sqlite":
        s = SqlLinkStore(f"sqlite:///{tmp_path / 'store.db'}")
    else:
        s = InMemoryLinkStore()
    s.open()
    yield s
    s.close()
