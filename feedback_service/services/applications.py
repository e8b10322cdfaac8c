from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from feedback_service.errors import Conflict, NotFound, ValidationError
from feedback_service.models import Application, Feedback, FeedbackComment
from feedback_service.models._types import utcnow
from feedback_service.observability import log_event
from feedback_service.utils.validators import (
    clean_str,
    is_valid_http_url,
    is_valid_origin,
    is_valid_slug,
    parse_uuid,
)
from .api_keys import issue_api_key

UPDATABLE_FIELDS = ("name", "slug", "description", "is_active", "webhook_url", "allowed_origins")


def _clean_origins(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("allowed_origins must be a list of origins")
    origins = []
    for raw in value:
        origin = raw.strip().rstrip("/") if isinstance(raw, str) else raw
        if not is_valid_origin(origin):
            raise ValidationError(f"Invalid origin: {raw!r}")
        if origin not in origins:
            origins.append(origin)
    return origins


def _clean_webhook(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("webhook_url must be a string")
    url = value.strip() or None
    if not is_valid_http_url(url):
        raise ValidationError("webhook_url must be an http(s) URL")
    return url


def get_application(session: Session, application_id, *, for_update: bool = False) -> Application:
    app_uuid = parse_uuid(application_id)
    if app_uuid is None:
        raise NotFound("Application not found")
    q = session.query(Application).filter(Application.id == app_uuid)
    if for_update:
        q = q.with_for_update()
    app = q.one_or_none()
    if not app:
        raise NotFound("Application not found")
    return app


def list_applications(session: Session) -> List[Application]:
    return session.query(Application).order_by(func.lower(Application.name), Application.id).all()


def create_application(
    session: Session,
    *,
    name: Optional[str],
    slug: Optional[str],
    description: Optional[str] = None,
    webhook_url: Optional[str] = None,
    allowed_origins: Optional[list] = None,
) -> Tuple[Application, str]:
    """Returns (application, plaintext api key). The key is not retrievable afterwards."""
    name = clean_str(name)
    slug = (slug or "").strip() if isinstance(slug, str) else None
    if not name or not slug:
        raise ValidationError("Name and slug are required")
    if not is_valid_slug(slug):
        raise ValidationError("Slug may contain lowercase letters, digits and single dashes")

    now = utcnow()
    app = Application(
        name=name,
        slug=slug,
        description=(description or "").strip() if isinstance(description, str) else "",
        webhook_url=_clean_webhook(webhook_url),
        allowed_origins=_clean_origins(allowed_origins),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    api_key = issue_api_key(app)
    session.add(app)
    try:
        session.flush()  # unique slug / key digest
    except IntegrityError as e:
        session.rollback()
        raise Conflict("Application with this slug already exists") from e
    log_event(current_app.logger, "application_created", application_id=str(app.id), slug=app.slug)
    return app, api_key


def update_application(
    session: Session,
    application_id,
    fields: Mapping[str, Any],
    *,
    expected_version: Optional[int] = None,
) -> Application:
    unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
    changes = dict(fields)
    if not changes:
        raise ValidationError("No fields to update")

    # Validate everything before touching the row
    clean: dict = {}
    if "name" in changes:
        clean["name"] = clean_str(changes["name"])
        if not clean["name"]:
            raise ValidationError("Name cannot be blank")
    if "slug" in changes:
        slug = changes["slug"]
        if not isinstance(slug, str) or not is_valid_slug(slug.strip()):
            raise ValidationError("Slug may contain lowercase letters, digits and single dashes")
        clean["slug"] = slug.strip()
    if "description" in changes:
        desc = changes["description"]
        if desc is not None and not isinstance(desc, str):
            raise ValidationError("description must be a string")
        clean["description"] = (desc or "").strip()
    if "is_active" in changes:
        if not isinstance(changes["is_active"], bool):
            raise ValidationError("is_active must be a boolean")
        clean["is_active"] = changes["is_active"]
    if "webhook_url" in changes:
        clean["webhook_url"] = _clean_webhook(changes["webhook_url"])
    if "allowed_origins" in changes:
        clean["allowed_origins"] = _clean_origins(changes["allowed_origins"])

    app = get_application(session, application_id, for_update=True)
    if expected_version is not None and expected_version != app.version:
        raise Conflict("Application was modified by someone else; reload and retry")

    if "slug" in clean and clean["slug"] != app.slug:
        # Slugs are public identifiers; frozen once feedback points here
        if session.query(Feedback.id).filter(Feedback.application_id == app.id).first():
            raise Conflict("Slug cannot change once the application has feedback")

    for key, value in clean.items():
        setattr(app, key, value)
    app.updated_at = utcnow()
    try:
        session.flush()
    except StaleDataError as e:
        session.rollback()
        raise Conflict("Application was modified concurrently; retry") from e
    except IntegrityError as e:
        session.rollback()
        raise Conflict("Application with this slug already exists") from e
    return app


def count_feedback(session: Session, application_id) -> int:
    return session.query(func.count(Feedback.id)).filter(Feedback.application_id == application_id).scalar() or 0


def delete_application(session: Session, application_id, *, confirm: bool = False) -> None:
    """
    Hard delete. Refused while feedback exists unless the caller confirms,
    in which case comments, feedback and (via ORM cascade) categories go with it.
    """
    app = get_application(session, application_id, for_update=True)
    if count_feedback(session, app.id) and not confirm:
        raise Conflict("Application has feedback; repeat with confirm=true to delete it and all its feedback")

    feedback_ids = select(Feedback.id).where(Feedback.application_id == app.id)
    (
        session.query(FeedbackComment)
        .filter(FeedbackComment.feedback_id.in_(feedback_ids))
        .delete(synchronize_session=False)
    )
    session.query(Feedback).filter(Feedback.application_id == app.id).delete(synchronize_session=False)
    app_id = str(app.id)
    session.delete(app)
    session.flush()
    log_event(current_app.logger, "application_deleted", application_id=app_id, confirmed=confirm)
