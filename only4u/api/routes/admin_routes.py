from flask import Blueprint, jsonify

from only4u.auth.identity import current_identity
from only4u.services.authorization import is_authorized

api_admin = Blueprint("api_admin", __name__, url_prefix="/api")


@api_admin.get("/check-admin")
def check_admin():
    identity = current_identity()
    if not identity:
        return jsonify({"isAdmin": False}), 401
    return jsonify({"isAdmin": is_authorized(identity)}), 200
