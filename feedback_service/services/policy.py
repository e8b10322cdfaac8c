from functools import wraps

from flask import g, request
from flask_login import current_user

from feedback_service.errors import Forbidden, InvalidCredential
from feedback_service.extensions import db
from feedback_service.security.cors import check_ingestion_origin
from .api_keys import authenticate, extract_api_key


def operator_required(fn):
    @wraps(fn)
    def _wrap(*args, **kwargs):
        if not current_user.is_authenticated:
            raise InvalidCredential("Authentication required")
        return fn(*args, **kwargs)
    return _wrap


def role_required(*roles):
    def deco(fn):
        @wraps(fn)
        def _wrap(*args, **kwargs):
            if not current_user.is_authenticated:
                raise InvalidCredential("Authentication required")
            if current_user.role not in roles:
                raise Forbidden("Insufficient role")
            return fn(*args, **kwargs)
        return _wrap
    return deco


def api_key_required(fn):
    """Resolve the calling application from its API key into g.application_id."""
    @wraps(fn)
    def _wrap(*args, **kwargs):
        g.application_id = authenticate(db.session, extract_api_key(request))
        check_ingestion_origin(g.application_id)
        return fn(*args, **kwargs)
    return _wrap
