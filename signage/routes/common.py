# File: signage/routes/common.py
from __future__ import annotations
from typing import Any, Dict, Optional
from flask import Response, jsonify, request


def json_ok(
    data: Any = None,
    *,
    message: str = "",
    id: Optional[int] = None,
    status: int = 200,
) -> Response:
    body: Dict[str, Any] = {"success": True, "message": message, "data": data}
    if id is not None:
        body["id"] = id
    resp = jsonify(body)
    resp.status_code = status
    resp.headers["Cache-Control"] = "no-store"
    return resp


def json_raw(payload: Any, status: int = 200) -> Response:
    """Grid/tree responses are returned without the envelope."""
    resp = jsonify(payload)
    resp.status_code = status
    resp.headers["Cache-Control"] = "no-store"
    return resp


def json_err(
    message: str,
    *,
    status: int = 400,
    code: str | None = None,
    extra: Dict[str, Any] | None = None,
) -> Response:
    data: Dict[str, Any] = {"success": False, "message": message, "httpStatus": status}
    if code:
        data["error"] = code
    if extra:
        data.update(extra)
    resp = jsonify(data)
    resp.status_code = status
    resp.headers["Cache-Control"] = "no-store"
    return resp


def no_content() -> Response:
    resp = Response(status=204)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def request_params() -> Dict[str, Any]:
    """Query string merged with a JSON object body or form fields (body wins)."""
    params: Dict[str, Any] = request.args.to_dict()
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        params.update(data)
    elif request.form:
        params.update(request.form.to_dict())
    return params
