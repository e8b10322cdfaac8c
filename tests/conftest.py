import os
# Ensure the app factory picks the Testing config & SQLite memory DB
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///:memory:")

import pytest
from feedback_service import create_app
from feedback_service.extensions import db
from feedback_service.models import User, ROLE_ADMIN, ROLE_MEMBER
from feedback_service.services.tokens import generate_operator_token

API = "/api/v1"

@pytest.fixture(scope="session")
def app():
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
        CORS_DASHBOARD_ORIGINS=["https://dash.example"],
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture(autouse=True)
def _db_clean(app):
    # Clean BEFORE each test
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()
    yield
    # And AFTER each test (keeps state hermetic even if a test fails mid-transaction)
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()


def make_operator(app, email: str, role: str = ROLE_MEMBER, is_active: bool = True) -> dict:
    """Create an operator row and return its id plus ready-to-use auth headers."""
    with app.app_context():
        u = User(email=email, name=email.split("@")[0], role=role, is_active=is_active)
        db.session.add(u)
        db.session.commit()
        token = generate_operator_token(u)
        return {"id": str(u.id), "token": token, "headers": {"Authorization": f"Bearer {token}"}}

@pytest.fixture()
def admin(app):
    return make_operator(app, "admin@example.com", ROLE_ADMIN)

@pytest.fixture()
def member(app):
    return make_operator(app, "member@example.com", ROLE_MEMBER)


def create_application(client, admin_headers, slug="acme-web", **extra) -> dict:
    body = {"name": extra.pop("name", slug.replace("-", " ").title()), "slug": slug, **extra}
    resp = client.post(f"{API}/applications", json=body, headers=admin_headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()

def submit(client, api_key, **fields):
    body = {"content": "Search is slow on mobile", **fields}
    return client.post(f"{API}/public/feedback", json=body, headers={"X-API-Key": api_key})

@pytest.fixture()
def application(client, admin):
    return create_application(client, admin["headers"])
