import pytest
from fastapi.testclient import TestClient

from leavedesk.config import Settings
from leavedesk.main import create_app
from leavedesk.seed import seed
from leavedesk.storage import MemoryStorage

LEAVE_PAYLOAD = {
    "userId": "emp1",
    "employeeId": "EMP001",
    "employeeName": "John Doe",
    "department": "Engineering",
    "leaveType": "sick",
    "fromDate": "2024-12-10",
    "toDate": "2024-12-12",
    "reason": "flu",
}


def make_config(**overrides):
    config = Settings()
    config.API_PREFIX = ""
    config.HR_EMAILS = []
    config.ENFORCE_PENDING_TRANSITIONS = False
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


@pytest.fixture
def leave_payload():
    return dict(LEAVE_PAYLOAD)


@pytest.fixture(params=["memory", "mongo"])
def storage(request):
    """Every backend behind the same contract, empty."""
    if request.param == "memory":
        return MemoryStorage()
    mongomock = pytest.importorskip("mongomock")
    from leavedesk.db import MongoStorage

    return MongoStorage(mongomock.MongoClient()["leave_desk_test"])


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def seeded_storage():
    storage = MemoryStorage()
    seed(storage)
    return storage


@pytest.fixture
def client(memory_storage):
    app = create_app(storage=memory_storage, config=make_config())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seeded_client(seeded_storage):
    app = create_app(storage=seeded_storage, config=make_config())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def app_factory():
    """Build an app around `storage` with config overrides, e.g. API_PREFIX="/api"."""

    def build(storage=None, **overrides):
        return create_app(storage=storage or MemoryStorage(), config=make_config(**overrides))

    return build


@pytest.fixture
def settings_factory():
    """Settings for tests, e.g. settings_factory(SEED_DEMO_DATA=True)."""
    return make_config
