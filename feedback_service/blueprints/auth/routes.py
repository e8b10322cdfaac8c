"""Operator session endpoints.

Login itself happens upstream (OAuth); these only inspect and renew the
bearer token that the login flow issued.
"""
from flask import jsonify
from flask_login import current_user, logout_user

from feedback_service.extensions import limiter
from feedback_service.services import tokens
from feedback_service.services.policy import operator_required
from . import bp


@bp.get("/me")
@operator_required
def me():
    return jsonify(current_user.to_dict()), 200


@bp.post("/refresh")
@limiter.limit("30 per hour")  # per operator (see _rate_limit_key)
@operator_required
def refresh():
    token = tokens.generate_operator_token(current_user)
    return jsonify({"token": token, "user": current_user.to_dict()}), 200


@bp.post("/logout")
@operator_required
def logout():
    # Tokens are stateless; the client drops its copy and it expires on its own
    logout_user()
    return jsonify({"message": "Logged out"}), 200
