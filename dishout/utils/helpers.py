from typing import Optional

from flask import current_app, jsonify, request, session

from ..services.container import DishOutServices
from ..services.scan_session import ScanSession

USER_KEY = "user_email"
SCAN_KEY = "scan_session_id"


def services() -> DishOutServices:
    return current_app.extensions["dishout"]


def current_user_email() -> Optional[str]:
    """Signed-in user's email, or None for anonymous visitors."""
    return session.get(USER_KEY)


def current_scan_session() -> ScanSession:
    """The caller's ScanSession, created on first use and remembered in the cookie session."""
    scan = services().registry.get_or_create(session.get(SCAN_KEY))
    session[SCAN_KEY] = scan.session_id
    return scan


def client_ip() -> Optional[str]:
    """Caller's address: first X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",", 1)[0].strip()
    return first or request.remote_addr


def forget_scan_session() -> None:
    """Drop the caller's ScanSession from memory and the cookie."""
    scan_id = session.pop(SCAN_KEY, None)
    if scan_id:
        services().registry.drop(scan_id)


def gather_image(request_files):
    """First non-empty file from form field 'image' (or 'images[]')."""
    imgs = request_files.getlist("image") or request_files.getlist("images[]")
    for f in imgs:
        if f and f.filename:
            return f
    return None


def error_response(error: str, msg: str, status: int, **extra):
    return jsonify({"error": error, "msg": msg, **extra}), status
