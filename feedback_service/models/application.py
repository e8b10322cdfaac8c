from __future__ import annotations

import uuid

from sqlalchemy import UniqueConstraint, Uuid, func

from feedback_service.extensions import db
from ._types import JSONDocument, utcnow


class Application(db.Model):
    """Tenant root. Only a hash of the API key is stored; the plaintext leaves the server once."""

    __tablename__ = "applications"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=False, default="", server_default="")

    api_key_hash = db.Column(db.String(64), nullable=False, unique=True)
    api_key_prefix = db.Column(db.String(16), nullable=False)
    api_key_rotated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    webhook_url = db.Column(db.String(2048), nullable=True)
    allowed_origins = db.Column(JSONDocument, nullable=False, default=list)

    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    categories = db.relationship(
        "Category",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Category.name",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Application id={self.id} slug={self.slug!r} active={self.is_active}>"

    def to_dict(self) -> dict:
        return dict(
            id=str(self.id),
            name=self.name,
            slug=self.slug,
            description=self.description or "",
            api_key_prefix=self.api_key_prefix,
            is_active=self.is_active,
            webhook_url=self.webhook_url,
            allowed_origins=list(self.allowed_origins or []),
            version=self.version,
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        Uuid,
        db.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(100), nullable=False)
    color = db.Column(db.String(32), nullable=False)
    icon = db.Column(db.String(64), nullable=False, default="", server_default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    application = db.relationship("Application", back_populates="categories")

    __table_args__ = (
        UniqueConstraint("application_id", "name", name="uq_categories_application_name"),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} application_id={self.application_id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return dict(
            id=self.id,
            application_id=str(self.application_id),
            name=self.name,
            color=self.color,
            icon=self.icon or "",
            created_at=self.created_at.isoformat() if self.created_at else None,
        )
