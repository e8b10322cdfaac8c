from conftest import API, create_application, submit


def test_health_endpoints(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200 and r.get_data(as_text=True) == "OK"
    assert client.get("/healthz").get_json() == {"status": "ok"}


def test_unknown_route_is_json(client):
    r = client.get(f"{API}/nope")
    assert r.status_code == 404
    assert "error" in r.get_json()


def test_public_preflight(client):
    r = client.options(
        f"{API}/public/feedback",
        headers={
            "Origin": "https://shop.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, X-API-Key",
        },
    )
    assert r.status_code == 204
    assert r.headers["Access-Control-Allow-Origin"] == "https://shop.example"
    assert "X-API-Key" in r.headers["Access-Control-Allow-Headers"]


def test_ingestion_origin_allowlist(client, admin):
    app_data = create_application(
        client, admin["headers"], slug="widget", allowed_origins=["https://shop.example"]
    )
    key = app_data["api_key"]

    r = client.post(
        f"{API}/public/feedback",
        json={"content": "hello"},
        headers={"X-API-Key": key, "Origin": "https://shop.example"},
    )
    assert r.status_code == 201
    assert r.headers["Access-Control-Allow-Origin"] == "https://shop.example"

    r = client.post(
        f"{API}/public/feedback",
        json={"content": "hello"},
        headers={"X-API-Key": key, "Origin": "https://evil.example"},
    )
    assert r.status_code == 403
    assert "Access-Control-Allow-Origin" not in r.headers

    # No Origin header: server-to-server call
    assert submit(client, key).status_code == 201


def test_empty_allowlist_accepts_any_origin(client, application):
    r = client.post(
        f"{API}/public/feedback",
        json={"content": "hello"},
        headers={"X-API-Key": application["api_key"], "Origin": "https://anywhere.example"},
    )
    assert r.status_code == 201
    assert r.headers["Access-Control-Allow-Origin"] == "https://anywhere.example"


def test_dashboard_origin(client, admin):
    r = client.get(f"{API}/applications", headers={**admin["headers"], "Origin": "https://dash.example"})
    assert r.headers["Access-Control-Allow-Origin"] == "https://dash.example"

    r = client.get(f"{API}/applications", headers={**admin["headers"], "Origin": "https://other.example"})
    assert "Access-Control-Allow-Origin" not in r.headers


def test_public_submit_rate_limited(app, client, application):
    app.config["PUBLIC_SUBMIT_RATE_LIMIT"] = "2 per minute"
    try:
        key = application["api_key"]
        assert submit(client, key).status_code == 201
        assert submit(client, key).status_code == 201
        r = submit(client, key)
        assert r.status_code == 429
        assert r.get_json()["error"] == "rate_limited"
        assert "Retry-After" in r.headers
    finally:
        app.config["PUBLIC_SUBMIT_RATE_LIMIT"] = "120 per minute"
