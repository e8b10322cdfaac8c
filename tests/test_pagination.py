import uuid
from datetime import datetime, timedelta, timezone

from werkzeug.datastructures import MultiDict

from feedback_service.extensions import db
from feedback_service.models import Feedback
from feedback_service.services.pagination import Page, parse_page_args
from conftest import API, create_application, submit


def test_parse_page_args_defaults():
    assert parse_page_args(MultiDict()) == (1, 20)
    assert parse_page_args(MultiDict({"page": "3", "limit": "50"})) == (3, 50)
    assert parse_page_args(MultiDict({"page": "0", "limit": "0"})) == (1, 20)
    assert parse_page_args(MultiDict({"page": "x", "limit": "101"})) == (1, 20)
    assert parse_page_args(MultiDict({"limit": "5"}), default_limit=10, max_limit=5) == (1, 5)


def test_page_count():
    assert Page(items=[], total=0, page=1, limit=20).pages == 0
    assert Page(items=[], total=41, page=1, limit=20).pages == 3


def test_pages_cover_everything_once(client, admin, application):
    for i in range(23):
        assert submit(client, application["api_key"], title=f"item {i}").status_code == 201

    seen = []
    for page in (1, 2, 3):
        body = client.get(f"{API}/feedback?limit=10&page={page}", headers=admin["headers"]).get_json()
        assert body["total"] == 23
        assert body["page"] == page and body["limit"] == 10
        seen.extend(fb["id"] for fb in body["feedback"])

    assert len(seen) == 23
    assert len(set(seen)) == 23

    body = client.get(f"{API}/feedback?limit=10&page=4", headers=admin["headers"]).get_json()
    assert body["feedback"] == [] and body["total"] == 23


def test_newest_first(app, client, admin, application):
    ids = [submit(client, application["api_key"], title=str(i)).get_json()["id"] for i in range(3)]
    with app.app_context():
        base = datetime(2026, 3, 1, tzinfo=timezone.utc)
        for n, fid in enumerate(ids):
            fb = db.session.get(Feedback, uuid.UUID(fid))
            fb.created_at = base + timedelta(minutes=n)
        db.session.commit()
    body = client.get(f"{API}/feedback", headers=admin["headers"]).get_json()
    assert [fb["id"] for fb in body["feedback"]] == list(reversed(ids))


def test_filters(client, admin, application):
    other = create_application(client, admin["headers"], slug="filters-other")
    a1 = submit(client, application["api_key"]).get_json()["id"]
    submit(client, application["api_key"])
    submit(client, other["api_key"])

    client.patch(f"{API}/feedback/{a1}", json={"status": "resolved", "priority": "high"}, headers=admin["headers"])

    body = client.get(f"{API}/feedback?app_id={application['id']}", headers=admin["headers"]).get_json()
    assert body["total"] == 2
    assert all(fb["application_id"] == application["id"] for fb in body["feedback"])

    body = client.get(f"{API}/feedback?status=resolved&priority=high", headers=admin["headers"]).get_json()
    assert [fb["id"] for fb in body["feedback"]] == [a1]

    body = client.get(f"{API}/feedback?app_id={other['id']}&status=resolved", headers=admin["headers"]).get_json()
    assert body["total"] == 0


def test_invalid_filters_rejected(client, admin):
    for qs in ("status=done", "priority=meh", "app_id=nope", "category_id=abc"):
        r = client.get(f"{API}/feedback?{qs}", headers=admin["headers"])
        assert r.status_code == 400, qs


def test_page_far_past_the_end_is_empty(client, admin, application):
    submit(client, application["api_key"])
    submit(client, application["api_key"])

    r = client.get(f"{API}/feedback?page=99999999999999999999", headers=admin["headers"])
    assert r.status_code == 200
    body = r.get_json()
    assert body["feedback"] == []
    assert body["total"] == 2
