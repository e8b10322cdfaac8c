"""Per-application API keys: issue, rotate, authenticate.

Keys are 32 random bytes (URL-safe base64). Only a sha256 digest and a short
display prefix are persisted, so the plaintext exists exactly once: in the
response to create / regenerate-key.
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
import uuid
from typing import Optional

from flask import Request, current_app
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from feedback_service.errors import Conflict, InvalidCredential, NotFound
from feedback_service.models import Application
from feedback_service.models._types import utcnow
from feedback_service.observability import log_event
from feedback_service.utils.validators import parse_uuid

API_KEY_BYTES = 32
API_KEY_PREFIX_LEN = 8


def generate_api_key() -> str:
    return secrets.token_urlsafe(API_KEY_BYTES)


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def issue_api_key(application: Application) -> str:
    """Attach a fresh key to ``application`` (not flushed) and return the plaintext."""
    api_key = generate_api_key()
    application.api_key_hash = hash_api_key(api_key)
    application.api_key_prefix = api_key[:API_KEY_PREFIX_LEN]
    return api_key


def rotate_api_key(session: Session, application_id) -> str:
    """
    Replace the key in a single row update. The old digest is overwritten in the
    same statement that writes the new one, so at any committed state exactly one
    key authenticates.
    """
    app_uuid = parse_uuid(application_id)
    if app_uuid is None:
        raise NotFound("Application not found")
    app = (
        session.query(Application)
        .filter(Application.id == app_uuid)
        .with_for_update()
        .one_or_none()
    )
    if not app:
        raise NotFound("Application not found")

    api_key = issue_api_key(app)
    app.api_key_rotated_at = utcnow()
    try:
        session.flush()
    except StaleDataError as e:
        session.rollback()
        raise Conflict("Application was modified concurrently; retry") from e
    log_event(current_app.logger, "api_key_rotated", application_id=str(app.id))
    return api_key


def extract_api_key(request: Request) -> Optional[str]:
    """X-API-Key header, then Authorization: Bearer, then ?api_key= (widget script tags)."""
    key = (request.headers.get("X-API-Key") or "").strip()
    if key:
        return key
    auth = request.headers.get("Authorization") or ""
    scheme, _, token = auth.partition(" ")
    if scheme == "Bearer" and token.strip():
        return token.strip()
    key = (request.args.get("api_key") or "").strip()
    return key or None


def authenticate(session: Session, presented_key: Optional[str]) -> uuid.UUID:
    """Resolve a presented key to its application id or raise InvalidCredential."""
    if not presented_key:
        raise InvalidCredential("Missing API key")

    digest = hash_api_key(presented_key)
    row = (
        session.query(Application.id, Application.api_key_hash, Application.is_active)
        .filter(Application.api_key_hash == digest)
        .one_or_none()
    )
    # Lookup is by digest; compare again in constant time before trusting the row
    if row is None or not hmac.compare_digest(row.api_key_hash, digest):
        raise InvalidCredential("Invalid API key")
    if not row.is_active:
        raise InvalidCredential("Application is inactive")
    return row.id
