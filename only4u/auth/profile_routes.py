# only4u/auth/profile_routes.py
from flask import jsonify, request

from only4u.auth.identity import require_identity
from only4u.auth.login_routes import auth_bp
from only4u.services.accounts import get_profile, update_profile


@auth_bp.get("/profile")
def profile():
    return jsonify(get_profile(require_identity())), 200


@auth_bp.put("/profile")
def profile_update():
    identity = require_identity()
    data = request.get_json(silent=True) or request.form or {}
    updated = update_profile(identity, data)
    return jsonify({"message": "Profile updated successfully", "profile": updated}), 200
