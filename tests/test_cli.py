from feedback_service.extensions import db
from feedback_service.models import User
from feedback_service.services.tokens import verify_operator_token
from conftest import API, create_application, make_operator, submit


def test_operators_create_and_token(app):
    runner = app.test_cli_runner()
    r = runner.invoke(args=["operators", "create", "--email", "Ops@Example.com", "--name", "Ops", "--role", "admin"])
    assert r.exit_code == 0, r.output
    assert "ops@example.com" in r.output

    r = runner.invoke(args=["operators", "create", "--email", "ops@example.com"])
    assert r.exit_code != 0
    assert "already exists" in r.output

    r = runner.invoke(args=["operators", "token", "--email", "ops@example.com"])
    assert r.exit_code == 0
    with app.app_context():
        user = db.session.query(User).filter_by(email="ops@example.com").one()
        assert verify_operator_token(r.output.strip()) == str(user.id)
        assert user.role == "admin"


def test_deactivate_keeps_last_admin(app):
    make_operator(app, "solo@example.com", role="admin")
    make_operator(app, "helper@example.com")
    runner = app.test_cli_runner()

    r = runner.invoke(args=["operators", "deactivate", "--email", "solo@example.com"])
    assert r.exit_code != 0
    assert "last active admin" in r.output

    r = runner.invoke(args=["operators", "deactivate", "--email", "helper@example.com"])
    assert r.exit_code == 0
    r = runner.invoke(args=["operators", "token", "--email", "helper@example.com"])
    assert r.exit_code != 0


def test_rotate_key_by_slug(app, client, admin):
    app_data = create_application(client, admin["headers"], slug="cli-app")
    runner = app.test_cli_runner()

    r = runner.invoke(args=["applications", "rotate-key", "--slug", "cli-app"])
    assert r.exit_code == 0, r.output
    new_key = r.output.strip().rsplit(" ", 1)[-1]

    assert submit(client, app_data["api_key"]).status_code == 401
    assert submit(client, new_key).status_code == 201

    r = runner.invoke(args=["applications", "rotate-key", "--slug", "missing"])
    assert r.exit_code != 0
