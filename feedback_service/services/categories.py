from __future__ import annotations

from typing import List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from feedback_service.errors import Conflict, InvalidReference, NotFound, ValidationError
from feedback_service.models import Application, Category, Feedback
from feedback_service.utils.helpers import to_int
from feedback_service.utils.validators import clean_str, is_valid_color, parse_uuid


def _require_application(session: Session, application_id) -> Application:
    app_uuid = parse_uuid(application_id)
    app = session.get(Application, app_uuid) if app_uuid else None
    if not app:
        raise NotFound("Application not found")
    return app


def list_categories(session: Session, application_id) -> List[Category]:
    app = _require_application(session, application_id)
    return (
        session.query(Category)
        .filter(Category.application_id == app.id)
        .order_by(func.lower(Category.name), Category.id)
        .all()
    )


def create_category(
    session: Session,
    application_id,
    *,
    name: Optional[str],
    color: Optional[str] = None,
    icon: Optional[str] = None,
) -> Category:
    app = _require_application(session, application_id)

    name = clean_str(name, max_len=100)
    if not name:
        raise ValidationError("Name is required")
    color = clean_str(color, max_len=32) or current_app.config.get("DEFAULT_CATEGORY_COLOR", "#3b82f6")
    if not is_valid_color(color):
        raise ValidationError("Color must be a hex value like #3b82f6")
    icon = clean_str(icon, max_len=64) or current_app.config.get("DEFAULT_CATEGORY_ICON", "")

    cat = Category(application_id=app.id, name=name, color=color, icon=icon)
    session.add(cat)
    try:
        session.flush()  # unique (application_id, name)
    except IntegrityError as e:
        session.rollback()
        raise Conflict("Category with this name already exists for this application") from e
    return cat


def delete_category(session: Session, application_id, category_id) -> None:
    """
    Remove a category. Feedback that used it stays, uncategorised
    (category_id -> NULL), so triage history is never lost.
    """
    app = _require_application(session, application_id)
    cat_id = to_int(category_id)
    cat = (
        session.query(Category)
        .filter(Category.id == cat_id, Category.application_id == app.id)
        .one_or_none()
        if cat_id is not None
        else None
    )
    if not cat:
        raise NotFound("Category not found")

    (
        session.query(Feedback)
        .filter(Feedback.category_id == cat.id)
        .update(
            {Feedback.category_id: None, Feedback.version: Feedback.version + 1},
            synchronize_session="fetch",
        )
    )
    session.delete(cat)
    session.flush()


def resolve_category(session: Session, application_id, category_id) -> Optional[Category]:
    """
    Category lookup for feedback writes. None passes through (uncategorised);
    anything else must exist *and* belong to application_id.
    """
    if category_id is None:
        return None
    cat_id = to_int(category_id)
    if cat_id is None:
        raise ValidationError("category_id must be an integer")
    cat = (
        session.query(Category)
        .filter(Category.id == cat_id, Category.application_id == application_id)
        .one_or_none()
    )
    if not cat:
        raise InvalidReference("Category does not belong to this application")
    return cat
