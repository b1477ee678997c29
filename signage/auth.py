from __future__ import annotations
import os
from functools import wraps
from flask import g, request
from .errors import NotAuthenticatedError
from .models import User
from .storage import load_db


def current_user() -> User:
    return g.user


def _resolve_user() -> User:
    db = load_db()
    users = db["users"]
    admin = next((u for u in users if int(u.get("userTypeId") or 0) == 1), users[0])

    if os.environ.get("SIGNAGE_DISABLE_AUTH") == "1":
        return User.from_record(admin)  # explicit bypass for local debugging

    if not any(str(u.get("apiKey") or "").strip() for u in users):
        return User.from_record(admin)  # no keys configured = no auth

    got = request.headers.get("X-Api-Key", "").strip()
    if got:
        for u in users:
            if str(u.get("apiKey") or "") == got:
                return User.from_record(u)
    raise NotAuthenticatedError()


def require_user(fn):
    """
    Resolves the caller from the X-Api-Key header and stores it on flask.g.
    Raises NotAuthenticatedError (401, login flag) for unknown keys.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.user = _resolve_user()
        return fn(*args, **kwargs)

    return wrapper
