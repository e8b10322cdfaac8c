from flask import current_app, jsonify, request

from feedback_service.extensions import db
from feedback_service.models import ROLE_ADMIN
from feedback_service.services import feedback as svc
from feedback_service.services.pagination import parse_page_args
from feedback_service.services.policy import operator_required, role_required
from feedback_service.utils.helpers import json_body, pop_version
from . import bp


@bp.get("")
@operator_required
def list_feedback():
    """Filtered, newest-first listing: ?app_id=&status=&priority=&category_id=&page=&limit="""
    flt = svc.FeedbackFilter.from_args(request.args)
    page, limit = parse_page_args(
        request.args,
        default_limit=current_app.config.get("FEEDBACK_DEFAULT_PAGE_SIZE", 20),
        max_limit=current_app.config.get("FEEDBACK_MAX_PAGE_SIZE", 100),
    )
    result = svc.list_feedback(db.session, flt, page=page, limit=limit)
    return jsonify(
        {
            "feedback": [fb.to_dict() for fb in result.items],
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
        }
    ), 200


@bp.get("/<feedback_id>")
@operator_required
def get_feedback(feedback_id):
    fb = svc.get_feedback(db.session, feedback_id)
    return jsonify(fb.to_dict()), 200


@bp.patch("/<feedback_id>")
@role_required(ROLE_ADMIN)
def update_feedback(feedback_id):
    data = json_body()
    expected_version = pop_version(data)

    fb = svc.update_feedback(db.session, feedback_id, data, expected_version=expected_version)
    db.session.commit()
    return jsonify({"message": "Feedback updated", "feedback": fb.to_dict()}), 200


@bp.delete("/<feedback_id>")
@role_required(ROLE_ADMIN)
def delete_feedback(feedback_id):
    svc.delete_feedback(db.session, feedback_id)
    db.session.commit()
    return jsonify({"message": "Feedback deleted"}), 200
