import uuid

from feedback_service.services import tokens
from feedback_service.extensions import db
from feedback_service.models import User
from conftest import API, make_operator


def test_me_returns_operator(client, admin):
    r = client.get(f"{API}/auth/me", headers=admin["headers"])
    assert r.status_code == 200
    assert r.get_json() == {"user_id": admin["id"], "email": "admin@example.com", "name": "admin", "role": "admin"}


def test_missing_or_garbage_token(client):
    assert client.get(f"{API}/auth/me").status_code == 401
    assert client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.get(f"{API}/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401


def test_refresh_issues_working_token(client, member):
    r = client.post(f"{API}/auth/refresh", headers=member["headers"])
    assert r.status_code == 200
    token = r.get_json()["token"]
    r = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.get_json()["user_id"] == member["id"]


def test_logout(client, member):
    r = client.post(f"{API}/auth/logout", headers=member["headers"])
    assert r.status_code == 200


def test_deactivated_operator_rejected(app, client):
    op = make_operator(app, "gone@example.com", is_active=False)
    assert client.get(f"{API}/auth/me", headers=op["headers"]).status_code == 401


def test_token_verification(app):
    with app.app_context():
        u = User(email="t@example.com", role="member")
        db.session.add(u)
        db.session.commit()
        token = tokens.generate_operator_token(u)

        assert tokens.verify_operator_token(token) == str(u.id)
        # Negative max_age: anything already issued is expired
        assert tokens.verify_operator_token(token, max_age_seconds=-1) is None
        assert tokens.verify_operator_token(token + "x") is None
        # Signed for another purpose
        assert tokens.verify("operator", tokens.generate("invite", str(uuid.uuid4())), 60) is None


def test_token_for_deleted_operator(app, client):
    op = make_operator(app, "temp@example.com")
    with app.app_context():
        db.session.query(User).delete()
        db.session.commit()
    assert client.get(f"{API}/auth/me", headers=op["headers"]).status_code == 401
