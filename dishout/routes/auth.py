from flask import Blueprint, jsonify, request, session

from ..utils.helpers import USER_KEY, current_user_email, error_response, forget_scan_session

auth_bp = Blueprint('auth', __name__, url_prefix="/auth")


@auth_bp.post("/session")
def sign_in():
    """Minimal sign-in gate: remembers the user's email in the cookie session"""
    body = request.get_json(silent=True) or {}
    email = (body.get("email") or "").strip()
    if "@" not in email:
        return error_response("missing_email", "JSON { 'email': '<address>' } required", 400)
    session[USER_KEY] = email
    return jsonify({"user_email": email}), 200


@auth_bp.get("/session")
def who_am_i():
    return jsonify({"user_email": current_user_email()}), 200


@auth_bp.delete("/session")
def sign_out():
    session.pop(USER_KEY, None)
    forget_scan_session()
    return jsonify({"user_email": None}), 200
