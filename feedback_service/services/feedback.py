"""Feedback lifecycle: create, read, triage (status/priority/category), delete.

Status moves are unrestricted (any -> any). The only side effects of a move
are the audit timestamps, which only ever move forward:

- reviewed_at: set the first time the item leaves ``new``; never rewritten.
- resolved_at: set whenever the item enters ``resolved``; never cleared when
  it is later reopened or closed.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from flask import current_app
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from feedback_service.errors import Conflict, NotFound, ValidationError
from feedback_service.models import DEFAULT_PRIORITY, PRIORITY_CHOICES, STATUS_CHOICES, Application, Feedback
from feedback_service.models.feedback import STATUS_NEW, STATUS_RESOLVED
from feedback_service.models._types import utcnow
from feedback_service.observability import log_event
from feedback_service.utils.helpers import to_int
from feedback_service.utils.validators import is_valid_email, parse_uuid
from .categories import resolve_category
from .pagination import Page, paginate

UPDATABLE_FIELDS = ("status", "priority", "category_id")

# Newest first; id breaks created_at ties so pages never overlap
LIST_ORDER = (Feedback.created_at.desc(), Feedback.id.desc())


@dataclass(frozen=True)
class FeedbackFilter:
    application_id: Optional[uuid.UUID] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    category_id: Optional[int] = None

    @classmethod
    def from_args(cls, args: Mapping) -> "FeedbackFilter":
        """Build from query-string args (app_id, status, priority, category_id). Blank means 'any'."""
        app_raw = (args.get("app_id") or "").strip()
        status = (args.get("status") or "").strip() or None
        priority = (args.get("priority") or "").strip() or None
        cat_raw = (args.get("category_id") or "").strip()

        app_id = parse_uuid(app_raw) if app_raw else None
        if app_raw and app_id is None:
            raise ValidationError("app_id must be a UUID")
        if status is not None and status not in STATUS_CHOICES:
            raise ValidationError(f"Unknown status: {status}")
        if priority is not None and priority not in PRIORITY_CHOICES:
            raise ValidationError(f"Unknown priority: {priority}")
        category_id = to_int(cat_raw) if cat_raw else None
        if cat_raw and category_id is None:
            raise ValidationError("category_id must be an integer")

        return cls(application_id=app_id, status=status, priority=priority, category_id=category_id)


def _validate_rating(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if value < 1 or value > 5:
        raise ValidationError("Rating must be between 1 and 5")
    return value


def _validate_document(value: Any, field: str) -> Optional[dict]:
    """Opaque key/value bag: must be a JSON object, stored verbatim."""
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be a JSON object")
    return value


def _optional_text(fields: Mapping, key: str, max_len: int) -> str:
    value = fields.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip()[:max_len]


def create_feedback(
    session: Session,
    application_id,
    fields: Mapping[str, Any],
    *,
    user_id=None,
) -> Feedback:
    """New feedback for an already-authenticated application. Everything is validated before insert."""
    app_uuid = parse_uuid(application_id)
    if app_uuid is None or session.get(Application, app_uuid) is None:
        raise NotFound("Application not found")

    content = fields.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Content is required")

    rating = _validate_rating(fields.get("rating"))
    browser_info = _validate_document(fields.get("browser_info"), "browser_info")
    metadata = _validate_document(fields.get("metadata"), "metadata")

    contact_email = _optional_text(fields, "contact_email", 255)
    if not is_valid_email(contact_email):
        raise ValidationError("contact_email is not a valid email address")

    end_user = None
    if user_id is not None:
        end_user = parse_uuid(user_id)
        if end_user is None:
            raise ValidationError("user_id must be a UUID")

    category = resolve_category(session, app_uuid, fields.get("category_id"))

    now = utcnow()
    fb = Feedback(
        application_id=app_uuid,
        user_id=end_user,
        category_id=category.id if category else None,
        title=_optional_text(fields, "title", 255),
        content=content.strip(),
        rating=rating,
        status=STATUS_NEW,
        priority=DEFAULT_PRIORITY,
        page_url=_optional_text(fields, "page_url", 2048),
        browser_info=browser_info,
        app_version=_optional_text(fields, "app_version", 64),
        extra_metadata=metadata,
        contact_email=contact_email,
        created_at=now,
        updated_at=now,
    )
    session.add(fb)
    session.flush()
    log_event(
        current_app.logger,
        "feedback_submitted",
        feedback_id=str(fb.id),
        application_id=str(app_uuid),
        has_rating=rating is not None,
    )
    return fb


def get_feedback(
    session: Session,
    feedback_id,
    *,
    application_id=None,
    for_update: bool = False,
) -> Feedback:
    """
    Load one item. With application_id, an item owned by another tenant is
    reported exactly like a missing one.
    """
    fb_uuid = parse_uuid(feedback_id)
    if fb_uuid is None:
        raise NotFound("Feedback not found")
    q = session.query(Feedback).filter(Feedback.id == fb_uuid)
    if application_id is not None:
        q = q.filter(Feedback.application_id == application_id)
    if for_update:
        q = q.with_for_update()
    fb = q.one_or_none()
    if not fb:
        raise NotFound("Feedback not found")
    return fb


def list_feedback(session: Session, flt: FeedbackFilter, *, page: int, limit: int) -> Page:
    query = session.query(Feedback)
    if flt.application_id is not None:
        query = query.filter(Feedback.application_id == flt.application_id)
    if flt.status is not None:
        query = query.filter(Feedback.status == flt.status)
    if flt.priority is not None:
        query = query.filter(Feedback.priority == flt.priority)
    if flt.category_id is not None:
        query = query.filter(Feedback.category_id == flt.category_id)
    return paginate(query, page=page, limit=limit, order_by=LIST_ORDER)


def apply_status(feedback: Feedback, new_status: str, now: datetime) -> bool:
    """
    Move feedback to new_status and derive audit timestamps.
    Returns False for a same-status no-op.
    """
    if new_status not in STATUS_CHOICES:
        raise ValidationError(f"Unknown status: {new_status}")
    if new_status == feedback.status:
        return False

    if new_status != STATUS_NEW and feedback.reviewed_at is None:
        feedback.reviewed_at = now
    if new_status == STATUS_RESOLVED:
        feedback.resolved_at = now
    feedback.status = new_status
    return True


def update_feedback(
    session: Session,
    feedback_id,
    fields: Mapping[str, Any],
    *,
    expected_version: Optional[int] = None,
    application_id=None,
) -> Feedback:
    """
    Triage update restricted to status, priority and category_id.
    expected_version makes the write conditional on what the caller last read.
    """
    unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")
    if not fields:
        raise ValidationError("No fields to update")

    status = fields.get("status")
    if "status" in fields and status not in STATUS_CHOICES:
        raise ValidationError(f"Unknown status: {status}")
    priority = fields.get("priority")
    if "priority" in fields and priority not in PRIORITY_CHOICES:
        raise ValidationError(f"Unknown priority: {priority}")

    fb = get_feedback(session, feedback_id, application_id=application_id, for_update=True)
    if expected_version is not None and expected_version != fb.version:
        raise Conflict("Feedback was modified by someone else; reload and retry")

    # Category must live in the feedback's own application (which never changes)
    category = None
    if "category_id" in fields:
        category = resolve_category(session, fb.application_id, fields["category_id"])

    now = utcnow()
    previous_status = fb.status
    status_changed = False
    if "status" in fields:
        status_changed = apply_status(fb, status, now)
    if "priority" in fields:
        fb.priority = priority
    if "category_id" in fields:
        fb.category_id = category.id if category else None
    fb.updated_at = now

    try:
        session.flush()
    except StaleDataError as e:
        session.rollback()
        raise Conflict("Feedback was modified concurrently; retry") from e

    if status_changed:
        log_event(
            current_app.logger,
            "feedback_status_changed",
            feedback_id=str(fb.id),
            application_id=str(fb.application_id),
            from_status=previous_status,
            to_status=fb.status,
        )
    return fb


def delete_feedback(session: Session, feedback_id, *, application_id=None) -> None:
    """Delete the item; its comments go with it (ORM cascade)."""
    fb = get_feedback(session, feedback_id, application_id=application_id, for_update=True)
    fb_id, app_id = str(fb.id), str(fb.application_id)
    session.delete(fb)
    try:
        session.flush()
    except StaleDataError as e:
        session.rollback()
        raise Conflict("Feedback was modified concurrently; retry") from e
    log_event(current_app.logger, "feedback_deleted", feedback_id=fb_id, application_id=app_id)
