import uuid

from flask_login import UserMixin
from sqlalchemy import CheckConstraint, Uuid, func

from feedback_service.extensions import db, login_manager
from feedback_service.services.tokens import verify_operator_token
from feedback_service.utils.validators import parse_uuid
from ._types import utcnow

# Keep simple text+CHECK for evolvable roles (no DB enum migration pain)
ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"
ROLE_CHOICES = (ROLE_ADMIN, ROLE_MEMBER)


class User(db.Model, UserMixin):
    """Dashboard operator. Identity comes from the external login flow; we keep a local row for roles."""

    __tablename__ = "users"

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(255), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False, server_default="")
    role = db.Column(db.String(20), nullable=False, default=ROLE_MEMBER, server_default=ROLE_MEMBER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('admin','member')", name="ck_users_role_valid"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def get_id(self) -> str:
        return str(self.id)

    def to_dict(self) -> dict:
        return dict(
            user_id=str(self.id),
            email=self.email,
            name=self.name,
            role=self.role,
        )


@login_manager.request_loader
def load_user_from_request(request):
    """Stateless operator identity: every call carries `Authorization: Bearer <token>`."""
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    user_id = parse_uuid(verify_operator_token(token.strip()))
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user
