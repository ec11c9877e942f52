"""Shared-secret access gate and the cookie-carried credential."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, request

import config


ADMIN = "admin"
GUEST = "guest"


def check_code(code) -> Optional[str]:
    """Return the admin bearer token when ``code`` equals the secret code."""
    if not isinstance(code, str) or not config.AUTH_SECRET_CODE:
        return None
    if code == config.AUTH_SECRET_CODE:
        return config.BEARER_TOKEN
    return None


def credential_role(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    if token == config.BEARER_TOKEN:
        return ADMIN
    if token == config.GUEST_TOKEN:
        return GUEST
    return None


def current_role() -> Optional[str]:
    return credential_role(request.cookies.get(config.AUTH_COOKIE))


def is_admin() -> bool:
    return current_role() == ADMIN


def set_credential(response, token: str):
    response.set_cookie(
        config.AUTH_COOKIE,
        token,
        max_age=config.COOKIE_MAX_AGE,
        httponly=True,
        samesite="Lax",
    )
    return response


def clear_credential(response):
    response.delete_cookie(config.AUTH_COOKIE)
    return response


def token_required(admin: bool = False):
    """Guard a JSON API view with the ``auth_token`` cookie.

    A missing or unknown credential is rejected with 401. When ``admin`` is
    set, the guest credential is rejected with 403.
    """

    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            role = current_role()
            if role is None:
                return jsonify({"message": "Unauthorized"}), 401
            if admin and role != ADMIN:
                return jsonify({"message": "Forbidden: guests cannot create posts"}), 403
            return view(*args, **kwargs)

        return wrapped

    return decorator
