# only4u/api/routes/product_routes.py
from flask import Blueprint, current_app, jsonify, request

from only4u.auth.identity import current_identity, require_identity
from only4u.errors import GroupNotFound, PersistenceError, ValidationError
from only4u.extensions import db
from only4u.services.authorization import require_admin
from only4u.services.catalog import get_group, list_groups_admin
from only4u.services.group_writer import delete_group
from only4u.services.image_store import ImageStore
from only4u.services.submission import ProductSubmissionWorkflow
from sqlalchemy.exc import SQLAlchemyError

api_products = Blueprint("api_products", __name__, url_prefix="/api/products")


def _group_id_arg() -> str:
    group_id = (request.args.get("id") or "").strip()
    if not group_id:
        raise ValidationError("Missing variant_group_id")
    return group_id


def _submit(group_id=None):
    workflow = ProductSubmissionWorkflow(current_identity())
    result = workflow.submit(request.form, request.files, group_id=group_id)
    if not result.ok:
        return jsonify({"error": result.message, "state": result.failed_at.value}), result.error.status_code
    return jsonify({"message": result.message, "variant_group_id": result.group_id}), 200


# ========================= Endpoints =========================

@api_products.get("")
def admin_list():
    require_admin(require_identity())
    sort_by = request.args.get("sortBy") or "name"
    sort_order = request.args.get("sortOrder") or "asc"
    return jsonify(list_groups_admin(sort_by, sort_order)), 200


@api_products.get("/group/<group_id>")
def admin_group(group_id: str):
    require_admin(require_identity())
    group = get_group(group_id)
    if group is None:
        raise GroupNotFound()
    return jsonify(group), 200


@api_products.post("")
def create_product():
    return _submit()


@api_products.patch("")
def update_product():
    return _submit(group_id=_group_id_arg())


@api_products.delete("")
def remove_product():
    identity = require_identity()
    require_admin(identity)
    group_id = _group_id_arg()
    try:
        delete_group(identity, group_id)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[GROUP] delete %s failed", group_id)
        raise PersistenceError(f"Failed to delete product: {e}") from e
    except Exception:
        db.session.rollback()
        raise
    ImageStore.from_app().delete_owner(group_id)
    return jsonify({"message": "Deleted"}), 200
