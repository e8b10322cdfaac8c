"""Cross-origin rules.

Ingestion endpoints are called from customer sites, so the allowed origins are
per application (``Application.allowed_origins``). A preflight carries no API
key, so it is answered for any origin; the real request is then checked
against the calling application's list. Operator endpoints only answer the
dashboard origins from ``CORS_DASHBOARD_ORIGINS``.
"""
from flask import current_app, g, request

from feedback_service.errors import Forbidden, NotFound
from feedback_service.extensions import db
from feedback_service.models import Application

ALLOWED_HEADERS = "Authorization, Content-Type, X-API-Key"
PREFLIGHT_MAX_AGE = "600"


def _public_prefix() -> str:
    return current_app.config.get("API_PREFIX", "/api/v1").rstrip("/") + "/public/"


def _is_public_path() -> bool:
    return request.path.startswith(_public_prefix())


def _origin_listed(origin: str, allowed) -> bool:
    # Empty list: the application has not restricted where its widget runs
    if not allowed or "*" in allowed:
        return True
    return origin.rstrip("/") in allowed


def check_ingestion_origin(application_id) -> None:
    """Reject a browser request whose Origin the application has not allowed."""
    origin = request.headers.get("Origin")
    if not origin:
        return  # server-to-server
    app_row = db.session.get(Application, application_id)
    if app_row is None:
        raise NotFound("Application not found")
    if not _origin_listed(origin, app_row.allowed_origins or []):
        raise Forbidden("Origin not allowed for this application")
    g.cors_origin = origin


def _is_preflight() -> bool:
    return request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers


def _handle_preflight():
    if not _is_preflight():
        return None
    origin = request.headers.get("Origin")
    if not origin:
        return None
    resp = current_app.make_default_options_response()
    resp.status_code = 204
    if _is_public_path():
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        _allow(resp, origin)
    elif origin in current_app.config.get("CORS_DASHBOARD_ORIGINS", []):
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
        _allow(resp, origin)
    return resp


def _allow(resp, origin: str) -> None:
    resp.headers["Access-Control-Allow-Origin"] = origin
    resp.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    resp.headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
    resp.vary.add("Origin")


def _add_cors_headers(resp):
    origin = request.headers.get("Origin")
    if not origin or _is_preflight():
        return resp
    if _is_public_path():
        if g.get("cors_origin") == origin:
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.vary.add("Origin")
    elif origin in current_app.config.get("CORS_DASHBOARD_ORIGINS", []):
        resp.headers["Access-Control-Allow-Origin"] = origin
        resp.vary.add("Origin")
    return resp


def init_cors(app):
    """Register before limiter.init_app so preflights never count against a limit."""
    app.before_request(_handle_preflight)
    app.after_request(_add_cors_headers)
