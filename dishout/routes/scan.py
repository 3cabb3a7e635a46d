from flask import Blueprint, request, jsonify

from ..errors import InvalidTransition, OrderRefused
from ..utils.helpers import (
    services, current_user_email, current_scan_session, client_ip, gather_image, error_response
)

scan_bp = Blueprint('scan', __name__)


@scan_bp.post("/capture")
def capture():
    """Open the camera/file picker; signed-out users are sent to the auth screen"""
    scan = current_scan_session()
    try:
        allowed = scan.capture(current_user_email())
    except InvalidTransition as e:
        return error_response("reset_required", str(e), 409)
    if not allowed:
        return error_response("auth_required", "Sign in to scan a dish.", 401, redirect="/auth")
    return jsonify(scan.snapshot()), 200


@scan_bp.post("/capture/cancel")
def cancel_capture():
    scan = current_scan_session()
    scan.cancel_capture()
    return jsonify(scan.snapshot()), 200


@scan_bp.post("/scan")
def scan_dish():
    """Analyze an uploaded photo (non-streaming) and return the final session snapshot"""
    if not current_user_email():
        return error_response("auth_required", "Sign in to scan a dish.", 401, redirect="/auth")

    f = gather_image(request.files)
    if f is None:
        return error_response("missing_file", "form field 'image' required", 400)

    scan = current_scan_session()
    try:
        token = scan.begin_scan()
    except InvalidTransition as e:
        return error_response("reset_required", str(e), 409)
    if token is None:
        return error_response("scan_in_progress", "A scan is already being analyzed.", 409)

    provider = services().location_provider(
        request.form.get("latitude"), request.form.get("longitude"), client_ip=client_ip()
    )
    scan.run_scan(token, f.read(), provider)
    return jsonify(scan.snapshot()), 200


@scan_bp.get("/scan")
def scan_status():
    """Poll the current session snapshot"""
    return jsonify(current_scan_session().snapshot()), 200


@scan_bp.post("/scan/reset")
def reset_scan():
    scan = current_scan_session()
    scan.reset()
    return jsonify(scan.snapshot()), 200


@scan_bp.get("/providers")
def delivery_providers():
    return jsonify({"providers": services().delivery_providers}), 200


@scan_bp.post("/order")
def request_order():
    """Pick a restaurant from the results; refused when it has no contact number"""
    body = request.get_json(silent=True) or {}
    try:
        index = int(body.get("index"))
    except (TypeError, ValueError):
        return error_response("missing_index", "JSON { 'index': <result position> } required", 400)

    scan = current_scan_session()
    try:
        order = scan.request_order(index)
    except OrderRefused as e:
        return error_response("order_refused", str(e), 422)
    except InvalidTransition as e:
        return error_response("invalid_state", str(e), 409)

    return jsonify({"pending_order": order.to_dict(), "providers": services().delivery_providers}), 200


@scan_bp.post("/order/provider")
def choose_provider():
    """Route the pending order through a delivery provider and return the WhatsApp link"""
    body = request.get_json(silent=True) or {}
    provider = (body.get("provider") or "").strip()
    allowed = services().delivery_providers
    if not provider or (allowed and provider not in allowed):
        return error_response("bad_provider", f"provider must be one of {allowed}", 400)

    scan = current_scan_session()
    try:
        url = scan.choose_provider(provider, current_user_email())
    except InvalidTransition as e:
        return error_response("invalid_state", str(e), 409)
    return jsonify({"url": url}), 200


@scan_bp.delete("/order")
def dismiss_order():
    scan = current_scan_session()
    scan.dismiss_order()
    return jsonify(scan.snapshot()), 200
