from app.modules.groups.models import Group, GroupMember
from app.modules.groups.service import parse_invite_token
from app.modules.lecture_notes.models import LectureNote
from app.modules.schedule.models import ScheduleEvent
from tests.helpers import ANNA, API, BORIS, VERA


def test_parse_invite_token():
    assert parse_invite_token("12") == 12
    assert parse_invite_token("https://groups.test/join?group=7") == 7
    assert parse_invite_token("nope") is None
    assert parse_invite_token("") is None


def test_admin_transfer_scenario(client, login, group_factory):
    anna = login(ANNA)
    boris = login(BORIS)
    group = group_factory(anna)
    assert group["memberCount"] == 1
    assert group["isAdmin"] is True
    assert group["inviteLink"] == f"https://groups.test/join?group={group['id']}"

    joined = client.post(f"{API}/groups/join", json={"invite": group["inviteLink"]}, headers=boris)
    assert joined.status_code == 200
    assert joined.json()["memberCount"] == 2
    assert joined.json()["isAdmin"] is False

    response = client.post(
        f"{API}/groups/{group['id']}/transfer-admin", json={"newAdminPhone": BORIS}, headers=anna
    )
    assert response.status_code == 200
    assert response.json()["isAdmin"] is False
    assert response.json()["admin"] == BORIS
    assert client.get(f"{API}/auth/session", headers=boris).json()["isGroupAdmin"] is True
    assert client.get(f"{API}/auth/session", headers=anna).json()["isGroupAdmin"] is False

    left = client.post(f"{API}/groups/{group['id']}/leave", headers=anna)
    assert left.status_code == 200
    assert client.get(f"{API}/groups/me", headers=boris).json()["memberCount"] == 1


def test_member_count_matches_rows(client, login, group_factory, db):
    group = group_factory(login(ANNA))
    client.post(f"{API}/groups/join", json={"groupId": group["id"]}, headers=login(BORIS))
    client.post(f"{API}/groups/join", json={"groupId": str(group["id"])}, headers=login(VERA))

    rows = db.query(GroupMember).filter(GroupMember.group_id == group["id"]).count()
    body = client.get(f"{API}/groups/me", headers=login(VERA)).json()
    assert rows == body["memberCount"] == 3
    assert body["members"] == [ANNA, BORIS, VERA]


def test_one_group_per_user(client, login, group_factory):
    anna = login(ANNA)
    boris = login(BORIS)
    group_factory(anna)
    other = group_factory(boris, name="ПИ-21-2")

    response = client.post(f"{API}/groups", json={"name": "Another"}, headers=anna)
    assert response.status_code == 409
    response = client.post(f"{API}/groups/join", json={"groupId": other["id"]}, headers=anna)
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


def test_empty_group_name(client, login):
    response = client.post(f"{API}/groups", json={"name": "  "}, headers=login(ANNA))
    assert response.status_code == 422


def test_join_unknown_group(client, login):
    response = client.post(f"{API}/groups/join", json={"groupId": 999}, headers=login(ANNA))
    assert response.status_code == 404


def test_join_full_group(client, login, group_factory, db):
    group = group_factory(login(ANNA))
    db.query(Group).filter(Group.id == group["id"]).update({Group.max_members: 1})
    db.commit()

    response = client.post(f"{API}/groups/join", json={"groupId": group["id"]}, headers=login(BORIS))
    assert response.status_code == 409
    assert response.json()["detail"] == "Group is full"


def test_invite_preview(client, login, group_factory):
    group = group_factory(login(ANNA))
    response = client.get(f"{API}/groups/join/{group['id']}", headers=login(BORIS))
    assert response.status_code == 200
    assert response.json() == {
        "id": group["id"],
        "name": "ПИ-21-1",
        "university": "Demo University",
        "memberCount": 1,
        "maxMembers": 25,
        "adminPhone": ANNA,
    }
    assert client.get(f"{API}/groups/join/abc", headers=login(BORIS)).status_code == 404


def test_group_visible_to_members_only(client, login, group_factory):
    group = group_factory(login(ANNA))
    assert client.get(f"{API}/groups/{group['id']}", headers=login(BORIS)).status_code == 403
    assert client.get(f"{API}/groups/me", headers=login(BORIS)).status_code == 404


def test_admin_cannot_leave(client, login, group_factory):
    anna = login(ANNA)
    group = group_factory(anna)
    response = client.post(f"{API}/groups/{group['id']}/leave", headers=anna)
    assert response.status_code == 403
    assert response.json()["error"] == "not_authorized"


def test_leave_when_not_member(client, login, group_factory):
    group = group_factory(login(ANNA))
    assert client.post(f"{API}/groups/{group['id']}/leave", headers=login(BORIS)).status_code == 404


def test_transfer_admin_rules(client, login, group_factory):
    anna = login(ANNA)
    boris = login(BORIS)
    group = group_factory(anna)
    client.post(f"{API}/groups/join", json={"groupId": group["id"]}, headers=boris)
    url = f"{API}/groups/{group['id']}/transfer-admin"

    assert client.post(url, json={"newAdminPhone": ANNA}, headers=boris).status_code == 403
    assert client.post(url, json={"newAdminPhone": ANNA}, headers=anna).status_code == 422
    assert client.post(url, json={"newAdminPhone": VERA}, headers=anna).status_code == 404


def test_delete_group_keeps_notes(client, login, group_factory, event_factory, db):
    anna = login(ANNA)
    boris = login(BORIS)
    group = group_factory(anna)
    client.post(f"{API}/groups/join", json={"groupId": group["id"]}, headers=boris)
    event = event_factory(anna).json()
    note = client.post(
        f"{API}/lecture-notes",
        json={"title": "Лекция 1", "content": "...", "schedule_event_id": event["id"]},
        headers=boris,
    ).json()
    assert note["schedule_event_id"] == event["id"]

    assert client.delete(f"{API}/groups/{group['id']}", headers=boris).status_code == 403
    assert client.delete(f"{API}/groups/{group['id']}", headers=anna).status_code == 204

    assert db.query(Group).count() == 0
    assert db.query(GroupMember).count() == 0
    assert db.query(ScheduleEvent).count() == 0
    stored = db.get(LectureNote, note["id"])
    assert stored is not None
    assert stored.schedule_event_id is None

    assert client.get(f"{API}/auth/session", headers=boris).json()["groupId"] is None
    notes = client.get(f"{API}/lecture-notes", params={"scope": "mine"}, headers=boris).json()["notes"]
    assert [n["id"] for n in notes] == [note["id"]]
    assert notes[0]["schedule_event_id"] is None


def test_delete_unknown_group(client, login):
    assert client.delete(f"{API}/groups/404", headers=login(ANNA)).status_code == 404
