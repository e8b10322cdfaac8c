from conftest import API, create_application, submit


def test_create_with_defaults(client, admin, application):
    r = client.post(
        f"{API}/applications/{application['id']}/categories", json={"name": "  Bug  "}, headers=admin["headers"]
    )
    assert r.status_code == 201
    cat = r.get_json()
    assert cat["name"] == "Bug"
    assert cat["color"] == "#3b82f6"
    assert cat["icon"] == "tag"
    assert cat["application_id"] == application["id"]


def test_name_unique_per_application(client, admin, application):
    url = f"{API}/applications/{application['id']}/categories"
    assert client.post(url, json={"name": "Bug"}, headers=admin["headers"]).status_code == 201
    assert client.post(url, json={"name": "Bug"}, headers=admin["headers"]).status_code == 409

    other = create_application(client, admin["headers"], slug="cat-other")
    r = client.post(f"{API}/applications/{other['id']}/categories", json={"name": "Bug"}, headers=admin["headers"])
    assert r.status_code == 201


def test_validation_and_unknown_application(client, admin, application):
    url = f"{API}/applications/{application['id']}/categories"
    assert client.post(url, json={"name": ""}, headers=admin["headers"]).status_code == 400
    assert client.post(url, json={"name": "X", "color": "blue"}, headers=admin["headers"]).status_code == 400
    r = client.post(
        f"{API}/applications/00000000-0000-0000-0000-000000000000/categories",
        json={"name": "X"},
        headers=admin["headers"],
    )
    assert r.status_code == 404


def test_listing_sorted_and_public(client, admin, member, application):
    url = f"{API}/applications/{application['id']}/categories"
    for name in ("UI", "bug", "Performance"):
        client.post(url, json={"name": name, "color": "#fff"}, headers=admin["headers"])

    names = [c["name"] for c in client.get(url, headers=member["headers"]).get_json()]
    assert names == ["bug", "Performance", "UI"]

    r = client.get(f"{API}/public/categories", headers={"X-API-Key": application["api_key"]})
    assert [c["name"] for c in r.get_json()] == names


def test_member_cannot_create(client, member, application):
    r = client.post(
        f"{API}/applications/{application['id']}/categories", json={"name": "X"}, headers=member["headers"]
    )
    assert r.status_code == 403


def test_delete_uncategorises_feedback(client, admin, application):
    url = f"{API}/applications/{application['id']}/categories"
    cat = client.post(url, json={"name": "Bug"}, headers=admin["headers"]).get_json()
    fid = submit(client, application["api_key"], category_id=cat["id"]).get_json()["id"]

    r = client.delete(f"{url}/{cat['id']}", headers=admin["headers"])
    assert r.status_code == 200

    fb = client.get(f"{API}/feedback/{fid}", headers=admin["headers"]).get_json()
    assert fb["category_id"] is None
    assert client.get(url, headers=admin["headers"]).get_json() == []


def test_delete_is_scoped_to_application(client, admin, application):
    other = create_application(client, admin["headers"], slug="scoped")
    cat = client.post(
        f"{API}/applications/{other['id']}/categories", json={"name": "Bug"}, headers=admin["headers"]
    ).get_json()
    r = client.delete(f"{API}/applications/{application['id']}/categories/{cat['id']}", headers=admin["headers"])
    assert r.status_code == 404
