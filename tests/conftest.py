import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="studygroups-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["BACKUP_DIR"] = os.path.join(_tmp_dir, "backups")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["ADMIN_PHONES"] = "+70000000000"
os.environ["PUBLIC_BASE_URL"] = "https://groups.test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database.sqlite_client import Base, DatabaseClient, init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.modules.auth.codes import verification_codes  # noqa: E402
from app.modules.auth.sms import get_sms_sender  # noqa: E402
from tests.helpers import API  # noqa: E402


class RecordingSmsSender:
    def __init__(self):
        self.sent = {}

    def send_code(self, phone, code):
        self.sent[phone] = code
        return True

    def last_code(self, phone):
        return self.sent[phone]


@pytest.fixture(autouse=True)
def reset_database():
    init_db()
    engine = DatabaseClient.get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    verification_codes.clear()
    yield
    verification_codes.clear()


@pytest.fixture
def db():
    session = DatabaseClient.get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sms():
    return RecordingSmsSender()


@pytest.fixture
def client(sms):
    app.dependency_overrides[get_sms_sender] = lambda: sms
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client, sms):
    """login(phone) -> Authorization headers for a freshly verified session"""

    def _login(phone, name=None):
        response = client.post(f"{API}/auth/request-code", json={"phone": phone})
        assert response.status_code == 200, response.text
        payload = {"phone": phone, "code": sms.last_code(phone)}
        if name:
            payload["name"] = name
        response = client.post(f"{API}/auth/verify", json=payload)
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    return _login


@pytest.fixture
def group_factory(client):
    def _create(headers, name="ПИ-21-1", university="Demo University"):
        response = client.post(f"{API}/groups", json={"name": name, "university": university}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def event_factory(client):
    def _add(headers, title="Математика", day="monday", time_slot="8:30-10:00", week=1, **extra):
        body = {"title": title, "day": day, "timeSlot": time_slot, "weekNumber": week, **extra}
        return client.post(f"{API}/schedule/events", json=body, headers=headers)

    return _add
