from flask import jsonify, request

from feedback_service.extensions import db
from feedback_service.models import ROLE_ADMIN
from feedback_service.services import applications as svc
from feedback_service.services.api_keys import rotate_api_key
from feedback_service.services.categories import create_category, delete_category, list_categories
from feedback_service.services.policy import operator_required, role_required
from feedback_service.utils.helpers import json_body, pop_version, to_bool
from . import bp


@bp.get("")
@operator_required
def list_applications():
    apps = svc.list_applications(db.session)
    return jsonify([a.to_dict() for a in apps]), 200


@bp.post("")
@role_required(ROLE_ADMIN)
def create_application():
    data = json_body()
    app_row, api_key = svc.create_application(
        db.session,
        name=data.get("name"),
        slug=data.get("slug"),
        description=data.get("description"),
        webhook_url=data.get("webhook_url"),
        allowed_origins=data.get("allowed_origins"),
    )
    db.session.commit()
    # The plaintext key is shown here and on regenerate-key only
    return jsonify({**app_row.to_dict(), "api_key": api_key}), 201


@bp.get("/<app_id>")
@operator_required
def get_application(app_id):
    app_row = svc.get_application(db.session, app_id)
    return jsonify(app_row.to_dict()), 200


@bp.patch("/<app_id>")
@role_required(ROLE_ADMIN)
def update_application(app_id):
    data = json_body()
    expected_version = pop_version(data)
    svc.update_application(db.session, app_id, data, expected_version=expected_version)
    db.session.commit()
    return jsonify({"message": "Application updated"}), 200


@bp.delete("/<app_id>")
@role_required(ROLE_ADMIN)
def delete_application(app_id):
    confirm = to_bool(request.args.get("confirm"))
    svc.delete_application(db.session, app_id, confirm=confirm)
    db.session.commit()
    return jsonify({"message": "Application deleted"}), 200


@bp.post("/<app_id>/regenerate-key")
@role_required(ROLE_ADMIN)
def regenerate_key(app_id):
    api_key = rotate_api_key(db.session, app_id)
    db.session.commit()
    return jsonify({"api_key": api_key, "message": "API key regenerated; the previous key no longer works"}), 200


# ---- Categories (scoped by application) ----

@bp.get("/<app_id>/categories")
@operator_required
def get_categories(app_id):
    cats = list_categories(db.session, app_id)
    return jsonify([c.to_dict() for c in cats]), 200


@bp.post("/<app_id>/categories")
@role_required(ROLE_ADMIN)
def post_category(app_id):
    data = json_body()
    cat = create_category(
        db.session,
        app_id,
        name=data.get("name"),
        color=data.get("color"),
        icon=data.get("icon"),
    )
    db.session.commit()
    return jsonify(cat.to_dict()), 201


@bp.delete("/<app_id>/categories/<category_id>")
@role_required(ROLE_ADMIN)
def remove_category(app_id, category_id):
    delete_category(db.session, app_id, category_id)
    db.session.commit()
    return jsonify({"message": "Category deleted"}), 200
