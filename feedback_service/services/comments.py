from __future__ import annotations

from typing import List

from flask import current_app
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from feedback_service.errors import Conflict, Forbidden, NotFound, ValidationError
from feedback_service.models import FeedbackComment
from feedback_service.models._types import utcnow
from feedback_service.observability import log_event
from feedback_service.utils.validators import parse_uuid
from .feedback import get_feedback


def _clean_content(content) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Content is required")
    return content.strip()


def _get_comment(session: Session, feedback_id, comment_id, *, for_update: bool = False) -> FeedbackComment:
    """A comment addressed through the wrong feedback id is simply not found."""
    fb_uuid = parse_uuid(feedback_id)
    c_uuid = parse_uuid(comment_id)
    if fb_uuid is None or c_uuid is None:
        raise NotFound("Comment not found")
    q = session.query(FeedbackComment).filter(
        FeedbackComment.id == c_uuid,
        FeedbackComment.feedback_id == fb_uuid,
    )
    if for_update:
        q = q.with_for_update()
    comment = q.one_or_none()
    if not comment:
        raise NotFound("Comment not found")
    return comment


def _check_author(comment: FeedbackComment, actor, verb: str) -> None:
    # actor=None means a trusted internal caller (CLI, tests)
    if actor is None or getattr(actor, "is_admin", False):
        return
    if comment.user_id != actor.id:
        raise Forbidden(f"You can only {verb} your own comments")


def list_comments(
    session: Session,
    feedback_id,
    *,
    include_internal: bool = True,
    application_id=None,
) -> List[FeedbackComment]:
    """Oldest first. Re-running the query returns the same rows plus anything added since."""
    fb = get_feedback(session, feedback_id, application_id=application_id)
    q = session.query(FeedbackComment).filter(FeedbackComment.feedback_id == fb.id)
    if not include_internal:
        q = q.filter(FeedbackComment.is_internal.is_(False))
    return q.order_by(FeedbackComment.created_at.asc(), FeedbackComment.id.asc()).all()


def create_comment(
    session: Session,
    feedback_id,
    *,
    user_id,
    content,
    is_internal: bool = False,
) -> FeedbackComment:
    content = _clean_content(content)
    if not isinstance(is_internal, bool):
        raise ValidationError("is_internal must be a boolean")
    author = parse_uuid(user_id)
    if author is None:
        raise ValidationError("user_id must be a UUID")

    fb = get_feedback(session, feedback_id)

    now = utcnow()
    comment = FeedbackComment(
        feedback_id=fb.id,
        user_id=author,
        content=content,
        is_internal=is_internal,
        created_at=now,
        updated_at=now,
    )
    session.add(comment)
    session.flush()
    log_event(
        current_app.logger,
        "comment_created",
        comment_id=str(comment.id),
        feedback_id=str(fb.id),
        is_internal=is_internal,
    )
    return comment


def update_comment(
    session: Session,
    feedback_id,
    comment_id,
    *,
    content,
    actor=None,
) -> FeedbackComment:
    """Only the text is editable; feedback_id and is_internal are fixed at creation."""
    content = _clean_content(content)
    comment = _get_comment(session, feedback_id, comment_id, for_update=True)
    _check_author(comment, actor, "update")

    comment.content = content
    comment.updated_at = utcnow()
    try:
        session.flush()
    except StaleDataError as e:
        session.rollback()
        raise Conflict("Comment was modified concurrently; retry") from e
    return comment


def delete_comment(session: Session, feedback_id, comment_id, *, actor=None) -> None:
    comment = _get_comment(session, feedback_id, comment_id, for_update=True)
    _check_author(comment, actor, "delete")
    c_id, fb_id = str(comment.id), str(comment.feedback_id)
    session.delete(comment)
    try:
        session.flush()
    except StaleDataError as e:
        session.rollback()
        raise Conflict("Comment was modified concurrently; retry") from e
    log_event(current_app.logger, "comment_deleted", comment_id=c_id, feedback_id=fb_id)

