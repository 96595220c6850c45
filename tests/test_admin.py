import os

from app.database.sqlite_client import DatabaseClient
from app.modules.groups.models import Group, GroupMember
from app.modules.schedule.models import ScheduleEvent
from app.modules.users.models import User
from app.scripts import seed_database
from app.scripts.backup_database import backup_database
from tests.helpers import ANNA, API, BORIS, OPERATOR


def test_db_status(client, login, group_factory):
    group_factory(login(ANNA))
    response = client.get(f"{API}/admin/db-status", headers=login(OPERATOR))
    assert response.status_code == 200
    body = response.json()
    assert body["tables"]["users"] == 2
    assert body["tables"]["groups"] == 1
    assert body["tables"]["group_members"] == 1
    assert body["totalRecords"] == 4
    assert body["databasePath"].endswith("test.db")
    assert body["sizeMb"] >= 0
    assert "timestamp" in body


def test_db_status_requires_operator(client, login):
    response = client.get(f"{API}/admin/db-status", headers=login(ANNA))
    assert response.status_code == 403


def test_health_endpoints(client):
    assert client.get("/").json()["status"] == "healthy"
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/ready").json() == {"status": "ready"}


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_backup(client, login, tmp_path):
    login(ANNA)
    target = backup_database(DatabaseClient.database_path(), str(tmp_path))
    assert os.path.basename(target).startswith("backup-")
    assert target.endswith(".db")
    assert os.path.getsize(target) > 0


def test_seed_is_idempotent(db):
    seed_database.main()
    seed_database.main()
    assert db.query(User).count() == len(seed_database.DEMO_USERS)
    assert db.query(Group).count() == 1
    assert db.query(GroupMember).count() == len(seed_database.DEMO_USERS)
    assert db.query(ScheduleEvent).count() == len(seed_database.DEMO_EVENTS)


def test_seed_reuses_admins_existing_group(db):
    seed_database.seed_users(db)
    other = Group(name="Чужая", admin_phone=BORIS)
    db.add(other)
    db.flush()
    db.add_all([GroupMember(group_id=other.id, user_phone=BORIS), GroupMember(group_id=other.id, user_phone=ANNA)])
    db.commit()

    seed_database.main()

    db.expire_all()
    assert db.query(Group).count() == 1
    assert db.query(Group).filter(Group.admin_phone == ANNA).count() == 0
    assert db.query(GroupMember).filter(GroupMember.user_phone == ANNA).one().group_id == other.id
    assert db.query(ScheduleEvent).filter(ScheduleEvent.group_id == other.id).count() == len(seed_database.DEMO_EVENTS)
