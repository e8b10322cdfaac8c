from .user import User, ROLE_ADMIN, ROLE_MEMBER, ROLE_CHOICES
from .application import Application, Category
from .feedback import (
    Feedback,
    FeedbackComment,
    STATUS_CHOICES,
    PRIORITY_CHOICES,
    DEFAULT_PRIORITY,
)

__all__ = [
    "User",
    "ROLE_ADMIN",
    "ROLE_MEMBER",
    "ROLE_CHOICES",
    "Application",
    "Category",
    "Feedback",
    "FeedbackComment",
    "STATUS_CHOICES",
    "PRIORITY_CHOICES",
    "DEFAULT_PRIORITY",
]
