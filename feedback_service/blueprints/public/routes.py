from flask import current_app, g, jsonify, request
from flask_limiter.util import get_remote_address

from feedback_service.extensions import db, limiter
from feedback_service.services.api_keys import extract_api_key, hash_api_key
from feedback_service.services.categories import list_categories
from feedback_service.services.comments import list_comments
from feedback_service.services.feedback import create_feedback, get_feedback
from feedback_service.services.policy import api_key_required
from feedback_service.utils.helpers import json_body
from . import bp

SUBMIT_FIELDS = (
    "title",
    "content",
    "rating",
    "category_id",
    "page_url",
    "browser_info",
    "app_version",
    "metadata",
    "contact_email",
)


def _submit_scope():
    # Limits run before auth, so key on the presented key's digest (never the key itself)
    key = extract_api_key(request)
    if key:
        return f"app-key:{hash_api_key(key)[:16]}"
    return f"anon:{get_remote_address()}"


def _submit_limit():
    return current_app.config.get("PUBLIC_SUBMIT_RATE_LIMIT", "120 per minute")


@bp.post("/feedback")
@limiter.limit(_submit_limit, key_func=_submit_scope)
@api_key_required
def submit_feedback():
    data = json_body()
    fields = {k: data[k] for k in SUBMIT_FIELDS if k in data}
    fb = create_feedback(db.session, g.application_id, fields, user_id=data.get("user_id"))
    db.session.commit()
    return jsonify({"id": str(fb.id), "message": "Feedback submitted"}), 201


@bp.get("/feedback/<feedback_id>")
@api_key_required
def feedback_status(feedback_id):
    fb = get_feedback(db.session, feedback_id, application_id=g.application_id)
    return jsonify(fb.to_public_dict()), 200


@bp.get("/feedback/<feedback_id>/comments")
@api_key_required
def feedback_comments(feedback_id):
    comments = list_comments(
        db.session,
        feedback_id,
        include_internal=False,
        application_id=g.application_id,
    )
    return jsonify([c.to_public_dict() for c in comments]), 200


@bp.get("/categories")
@api_key_required
def categories():
    cats = list_categories(db.session, g.application_id)
    return jsonify([c.to_dict() for c in cats]), 200
