from __future__ import annotations

import hmac
from functools import wraps

from flask import current_app, g, jsonify, request
from itsdangerous import BadData, URLSafeTimedSerializer
from werkzeug.security import check_password_hash

from navhub.models import utcnow


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        secret_key=current_app.config["SECRET_KEY"], salt="navhub-auth"
    )


def check_credentials(username: str, password: str) -> bool:
    expected = current_app.config["ADMIN_USERNAME"]
    if not username or not hmac.compare_digest(username.encode(), expected.encode()):
        return False
    return check_password_hash(current_app.config["ADMIN_PASSWORD_HASH"], password)


def issue_token(username: str, remember_me: bool = False) -> str:
    return _serializer().dumps({"sub": username, "remember": bool(remember_me)})


def verify_token(token: str) -> dict | None:
    remember_ttl = int(current_app.config["AUTH_REMEMBER_TTL_SECONDS"])
    session_ttl = int(current_app.config["AUTH_TOKEN_TTL_SECONDS"])
    try:
        payload, issued_at = _serializer().loads(
            token, max_age=max(remember_ttl, session_ttl), return_timestamp=True
        )
    except BadData:
        return None
    if not isinstance(payload, dict):
        return None
    if payload.get("sub") != current_app.config["ADMIN_USERNAME"]:
        return None
    ttl = remember_ttl if payload.get("remember") else session_ttl
    if (utcnow() - issued_at).total_seconds() > ttl:
        return None
    return payload


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header.removeprefix("Bearer ").strip() or None


def request_is_authenticated() -> bool:
    if "is_authenticated" not in g:
        token = _bearer_token()
        g.is_authenticated = bool(token and verify_token(token))
    return g.is_authenticated


def api_auth_required(func):
    @wraps(func)
    def wrapped(*args, **kwargs):
        if not request_is_authenticated():
            return jsonify({"error": "authentication required"}), 401
        return func(*args, **kwargs)

    return wrapped
