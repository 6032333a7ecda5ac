# only4u/auth/signup_routes.py
from flask import current_app, jsonify, request
from flask_login import login_user

from only4u.auth.login_routes import auth_bp
from only4u.services.accounts import signup as create_account


@auth_bp.post("/signup")
def signup():
    """Create a customer account (role `user`) and sign it in right away."""
    user = create_account(request.form, request.files.get("businessLicense"))
    if not login_user(user):
        current_app.logger.warning("[SIGNUP] auto-login failed for %s", user.id)
        return jsonify({"message": "User created successfully, please log in"}), 201
    return jsonify({"message": "User created and logged in successfully", "id": user.id}), 201
