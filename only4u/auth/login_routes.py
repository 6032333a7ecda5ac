# only4u/auth/login_routes.py
from flask import Blueprint, current_app, jsonify, request
from flask_login import login_user, logout_user

from only4u.auth.identity import require_identity
from only4u.extensions import db
from only4u.models import User
from only4u.services.accounts import authenticate

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _session_user(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.display_name,
        "role": user.role or "user",
    }


@auth_bp.post("/auth/login")
def login():
    data = request.get_json(silent=True) or request.form or {}
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify({"error": "Missing or invalid credentials"}), 400

    user = authenticate(email, password)
    if user is None:
        current_app.logger.info("[LOGIN] rejected %r", email)
        return jsonify({"error": "Invalid email or password"}), 401

    login_user(user)
    current_app.logger.info("[LOGIN] %s signed in", user.id)
    return jsonify(_session_user(user)), 200


@auth_bp.post("/auth/logout")
def logout():
    logout_user()
    return jsonify({"message": "Signed out"}), 200


@auth_bp.get("/auth/session")
def session_info():
    identity = require_identity()
    user = db.session.get(User, identity)
    return jsonify(_session_user(user)), 200
