from feedback_service.services.api_keys import generate_api_key, hash_api_key
from conftest import API, submit


def test_generated_keys_are_unique_and_hashed():
    a, b = generate_api_key(), generate_api_key()
    assert a != b
    assert len(a) >= 40
    assert hash_api_key(a) != hash_api_key(b)
    assert len(hash_api_key(a)) == 64


def test_missing_and_invalid_key(client, application):
    r = client.post(f"{API}/public/feedback", json={"content": "hi"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Missing API key"

    r = submit(client, "definitely-not-a-key")
    assert r.status_code == 401
    assert r.get_json()["error"] == "Invalid API key"


def test_key_accepted_via_bearer_and_query(client, application):
    key = application["api_key"]
    r = client.post(f"{API}/public/feedback", json={"content": "a"}, headers={"Authorization": f"Bearer {key}"})
    assert r.status_code == 201
    r = client.get(f"{API}/public/categories?api_key={key}")
    assert r.status_code == 200


def test_regenerate_invalidates_old_key(client, admin, application):
    old_key = application["api_key"]
    r = client.post(f"{API}/applications/{application['id']}/regenerate-key", headers=admin["headers"])
    assert r.status_code == 200
    new_key = r.get_json()["api_key"]
    assert new_key and new_key != old_key

    assert submit(client, old_key).status_code == 401
    assert submit(client, new_key).status_code == 201

    detail = client.get(f"{API}/applications/{application['id']}", headers=admin["headers"]).get_json()
    assert detail["api_key_prefix"] == new_key[:8]


def test_regenerate_requires_admin(client, member, application):
    r = client.post(f"{API}/applications/{application['id']}/regenerate-key", headers=member["headers"])
    assert r.status_code == 403


def test_inactive_application_rejected(client, admin, application):
    r = client.patch(
        f"{API}/applications/{application['id']}",
        json={"is_active": False},
        headers=admin["headers"],
    )
    assert r.status_code == 200

    r = submit(client, application["api_key"])
    assert r.status_code == 401
    assert r.get_json()["error"] == "Application is inactive"
