from app.modules.auth.codes import VerificationCodeStore
from app.modules.auth.tokens import create_access_token
from tests.helpers import ANNA, API, BORIS


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_code_expires():
    clock = FakeClock()
    store = VerificationCodeStore(ttl_seconds=600, clock=clock)
    code = store.issue(ANNA)
    clock.now += 601
    assert not store.has_pending(ANNA)
    assert store.verify(ANNA, code) is False


def test_code_is_single_use():
    store = VerificationCodeStore(ttl_seconds=600, clock=FakeClock())
    code = store.issue(ANNA)
    assert store.verify(ANNA, code) is True
    assert store.verify(ANNA, code) is False


def test_new_code_replaces_old_one():
    store = VerificationCodeStore(ttl_seconds=600, clock=FakeClock())
    first = store.issue(ANNA)
    second = store.issue(ANNA)
    if first != second:
        assert store.verify(ANNA, first) is False
    assert store.verify(ANNA, second) is True


def test_code_has_configured_length():
    store = VerificationCodeStore(ttl_seconds=600, code_length=6)
    code = store.issue(ANNA)
    assert len(code) == 6 and code.isdigit()


def test_login_creates_user(client, sms):
    response = client.post(f"{API}/auth/request-code", json={"phone": "+7 (999) 000-00-01"})
    assert response.status_code == 200
    assert response.json()["phone"] == ANNA
    assert response.json()["expiresIn"] == 600

    response = client.post(f"{API}/auth/verify", json={"phone": ANNA, "code": sms.last_code(ANNA), "name": "Анна"})
    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["session"]["phone"] == ANNA
    assert body["session"]["groupId"] is None
    assert body["session"]["isGroupAdmin"] is False

    me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.json()["name"] == "Анна"


def test_wrong_code_rejected(client, sms):
    client.post(f"{API}/auth/request-code", json={"phone": ANNA})
    wrong = "000000" if sms.last_code(ANNA) != "000000" else "111111"
    response = client.post(f"{API}/auth/verify", json={"phone": ANNA, "code": wrong})
    assert response.status_code == 401
    assert response.json()["error"] == "not_authenticated"


def test_code_cannot_be_reused(client, sms):
    client.post(f"{API}/auth/request-code", json={"phone": ANNA})
    code = sms.last_code(ANNA)
    assert client.post(f"{API}/auth/verify", json={"phone": ANNA, "code": code}).status_code == 200
    assert client.post(f"{API}/auth/verify", json={"phone": ANNA, "code": code}).status_code == 401


def test_invalid_phone_rejected(client):
    response = client.post(f"{API}/auth/request-code", json={"phone": "12ab"})
    assert response.status_code == 422


def test_missing_token(client):
    response = client.get(f"{API}/auth/session")
    assert response.status_code == 401
    assert response.json()["error"] == "not_authenticated"


def test_garbage_token(client):
    response = client.get(f"{API}/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_session_is_read_through(client, login, group_factory):
    headers = login(ANNA)
    # Token issued before the group existed still sees it
    group = group_factory(headers)
    session = client.get(f"{API}/auth/session", headers=headers).json()
    assert session["groupId"] == group["id"]
    assert session["groupName"] == "ПИ-21-1"
    assert session["isGroupAdmin"] is True
    assert session["memberCount"] == 1


def test_snapshot_claims_are_not_trusted(client, login, group_factory):
    login(BORIS)
    group_factory(login(ANNA))
    forged = create_access_token(BORIS, {"session": {"groupId": 1, "isGroupAdmin": True}})
    headers = {"Authorization": f"Bearer {forged}"}

    session = client.get(f"{API}/auth/session", headers=headers).json()
    assert session["groupId"] is None
    assert session["isGroupAdmin"] is False
    response = client.post(
        f"{API}/schedule/events",
        json={"title": "X", "day": "monday", "timeSlot": "8:30-10:00", "weekNumber": 1},
        headers=headers,
    )
    assert response.status_code == 404


def test_refresh_carries_current_group(client, login, group_factory):
    headers = login(ANNA)
    group = group_factory(headers)
    response = client.post(f"{API}/auth/refresh", headers=headers)
    assert response.status_code == 200
    assert response.json()["session"]["groupId"] == group["id"]


def test_logout(client, login):
    headers = login(ANNA)
    assert client.post(f"{API}/auth/logout", headers=headers).status_code == 200


def test_update_profile_name(client, login):
    headers = login(ANNA)
    assert client.get(f"{API}/users/me", headers=headers).json()["name"] == f"User_{ANNA}"
    response = client.put(f"{API}/users/me", json={"name": "Анна"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Анна"
    assert client.put(f"{API}/users/me", json={"name": " "}, headers=headers).status_code == 422


def test_non_digit_code_rejected(client, sms):
    client.post(f"{API}/auth/request-code", json={"phone": ANNA})
    response = client.post(f"{API}/auth/verify", json={"phone": ANNA, "code": "абвгд"})
    assert response.status_code == 401
    assert response.json()["error"] == "not_authenticated"
    # The real code still works afterwards
    response = client.post(f"{API}/auth/verify", json={"phone": ANNA, "code": sms.last_code(ANNA)})
    assert response.status_code == 200


def test_store_rejects_non_ascii_code():
    store = VerificationCodeStore(ttl_seconds=600, clock=FakeClock())
    store.issue(ANNA)
    assert store.verify(ANNA, "абвгд") is False


def test_session_university_is_null_when_unset(client, login):
    headers = login(ANNA)
    client.post(f"{API}/groups", json={"name": "Без вуза"}, headers=headers)
    session = client.get(f"{API}/auth/session", headers=headers).json()
    assert session["groupName"] == "Без вуза"
    assert session["university"] is None
