from flask import jsonify
from flask_login import current_user

from feedback_service.errors import Forbidden
from feedback_service.extensions import db
from feedback_service.services import comments as svc
from feedback_service.services.policy import operator_required
from feedback_service.utils.helpers import json_body
from . import bp


@bp.get("/<feedback_id>/comments")
@operator_required
def list_comments(feedback_id):
    comments = svc.list_comments(db.session, feedback_id, include_internal=current_user.is_admin)
    return jsonify([c.to_dict() for c in comments]), 200


@bp.post("/<feedback_id>/comments")
@operator_required
def create_comment(feedback_id):
    data = json_body()
    is_internal = data.get("is_internal", False)
    if is_internal is True and not current_user.is_admin:
        raise Forbidden("Only admins can add internal comments")
    comment = svc.create_comment(
        db.session,
        feedback_id,
        user_id=current_user.id,
        content=data.get("content"),
        is_internal=is_internal,
    )
    db.session.commit()
    return jsonify(comment.to_dict()), 201


@bp.patch("/<feedback_id>/comments/<comment_id>")
@operator_required
def update_comment(feedback_id, comment_id):
    data = json_body()
    svc.update_comment(db.session, feedback_id, comment_id, content=data.get("content"), actor=current_user)
    db.session.commit()
    return jsonify({"message": "Comment updated"}), 200


@bp.delete("/<feedback_id>/comments/<comment_id>")
@operator_required
def delete_comment(feedback_id, comment_id):
    svc.delete_comment(db.session, feedback_id, comment_id, actor=current_user)
    db.session.commit()
    return jsonify({"message": "Comment deleted"}), 200
