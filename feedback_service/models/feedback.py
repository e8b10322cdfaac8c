from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Index, Uuid, func

from feedback_service.extensions import db
from ._types import JSONDocument, utcnow

# Triage status: any -> any is allowed; only derived timestamps react to moves
STATUS_NEW = "new"
STATUS_IN_PROGRESS = "in_progress"
STATUS_RESOLVED = "resolved"
STATUS_CLOSED = "closed"
STATUS_CHOICES = (STATUS_NEW, STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_CLOSED)

# Ordered lowest -> highest
PRIORITY_CHOICES = ("low", "medium", "high", "urgent")
DEFAULT_PRIORITY = "medium"


class Feedback(db.Model):
    __tablename__ = "feedback"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = db.Column(
        Uuid,
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # End-user of the client application, when the widget knows it
    user_id = db.Column(Uuid, nullable=True, index=True)
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title = db.Column(db.String(255), nullable=False, default="", server_default="")
    content = db.Column(db.Text, nullable=False)
    rating = db.Column(db.SmallInteger, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_NEW, server_default=STATUS_NEW)
    priority = db.Column(db.String(20), nullable=False, default=DEFAULT_PRIORITY, server_default=DEFAULT_PRIORITY)

    page_url = db.Column(db.String(2048), nullable=False, default="", server_default="")
    browser_info = db.Column(JSONDocument, nullable=True)
    app_version = db.Column(db.String(64), nullable=False, default="", server_default="")
    # "metadata" is reserved on declarative models
    extra_metadata = db.Column("metadata", JSONDocument, nullable=True)
    contact_email = db.Column(db.String(255), nullable=False, default="", server_default="")

    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    comments = db.relationship(
        "FeedbackComment",
        back_populates="feedback",
        cascade="all, delete-orphan",
        order_by="FeedbackComment.created_at",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_feedback_application_created_at", "application_id", "created_at"),
        Index("ix_feedback_status", "status"),
        Index("ix_feedback_priority", "priority"),
        CheckConstraint(
            "status IN ('new','in_progress','resolved','closed')",
            name="ck_feedback_status_valid",
        ),
        CheckConstraint(
            "priority IN ('low','medium','high','urgent')",
            name="ck_feedback_priority_valid",
        ),
        CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 5)", name="ck_feedback_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Feedback id={self.id} application_id={self.application_id} status={self.status!r}>"

    def to_dict(self) -> dict:
        return dict(
            id=str(self.id),
            application_id=str(self.application_id),
            user_id=str(self.user_id) if self.user_id else None,
            category_id=self.category_id,
            title=self.title or "",
            content=self.content,
            rating=self.rating,
            status=self.status,
            priority=self.priority,
            page_url=self.page_url or "",
            browser_info=self.browser_info,
            app_version=self.app_version or "",
            metadata=self.extra_metadata,
            contact_email=self.contact_email or "",
            version=self.version,
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
            reviewed_at=self.reviewed_at.isoformat() if self.reviewed_at else None,
            resolved_at=self.resolved_at.isoformat() if self.resolved_at else None,
        )

    def to_public_dict(self) -> dict:
        """What the submitting end user may see: status only, no triage internals."""
        return dict(
            id=str(self.id),
            status=self.status,
            priority=self.priority,
            created_at=self.created_at.isoformat() if self.created_at else None,
        )


class FeedbackComment(db.Model):
    __tablename__ = "feedback_comments"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    feedback_id = db.Column(
        Uuid,
        db.ForeignKey("feedback.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Operator (or system) identity that wrote the comment
    user_id = db.Column(Uuid, nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    is_internal = db.Column(db.Boolean, nullable=False, default=False)

    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    feedback = db.relationship("Feedback", back_populates="comments")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_feedback_comments_feedback_created_at", "feedback_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<FeedbackComment id={self.id} feedback_id={self.feedback_id} internal={self.is_internal}>"

    def to_dict(self) -> dict:
        return dict(
            id=str(self.id),
            feedback_id=str(self.feedback_id),
            user_id=str(self.user_id),
            content=self.content,
            is_internal=self.is_internal,
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )

    def to_public_dict(self) -> dict:
        return dict(
            id=str(self.id),
            content=self.content,
            created_at=self.created_at.isoformat() if self.created_at else None,
        )
