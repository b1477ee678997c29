"""
Health + route listing. API responsibilities live in the other blueprints.
"""
from __future__ import annotations
from datetime import datetime
from flask import Blueprint, Response, current_app
from ..settings import TZ
from .common import json_raw

bp = Blueprint("pages", __name__)


@bp.get("/health")
def health() -> Response:
    return json_raw({"success": True, "server_time": datetime.now(TZ).isoformat()})


@bp.get("/_routes")
def api_routes() -> Response:
    routes = []
    for r in current_app.url_map.iter_rules():
        meths = getattr(r, "methods", set()) or set()
        methods = sorted(
            m for m in meths if m in {"GET", "POST", "PUT", "DELETE", "PATCH"}
        )
        routes.append({"rule": str(r), "endpoint": r.endpoint, "methods": methods})
    return json_raw({"success": True, "routes": routes})
