# File: signage/editor/client.py
"""
HTTP client used by the layout editor.

Every call goes through `ApiClient.call(group, name, **ids)`; the URL table
below is the only place the editor knows about server paths.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, NamedTuple, Optional

import requests

log = logging.getLogger(__name__)


class Endpoint(NamedTuple):
    method: str
    url: str


URLS: Dict[str, Dict[str, Endpoint]] = {
    "layout": {
        "get": Endpoint("GET", "/layout/:id"),
        "list": Endpoint("GET", "/layout"),
        "status": Endpoint("GET", "/layout/status/:id"),
        "checkout": Endpoint("PUT", "/layout/checkout/:id"),
        "publish": Endpoint("PUT", "/layout/publish/:id"),
        "discard": Endpoint("PUT", "/layout/discard/:id"),
        "delete": Endpoint("DELETE", "/layout/:id"),
        "designer": Endpoint("GET", "/layout/designer/:id"),
        "downloadBackground": Endpoint("GET", "/layout/background/:id"),
    },
    "region": {
        "create": Endpoint("POST", "/region/:id"),
        "transform": Endpoint("PUT", "/region/:id"),
        "delete": Endpoint("DELETE", "/region/:id"),
        "drawer": Endpoint("POST", "/region/drawer/:id"),
    },
    "widget": {
        "create": Endpoint("POST", "/playlist/widget/:id"),
        "edit": Endpoint("PUT", "/playlist/widget/:id"),
        "delete": Endpoint("DELETE", "/playlist/widget/:id"),
    },
    "playlist": {
        "order": Endpoint("POST", "/playlist/order/:id"),
    },
}


class ApiError(Exception):
    """The server answered with success=false, an error status or garbage."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload if payload is not None else {}


class LoginRequiredError(ApiError):
    pass


def url_for(group: str, name: str, element_id: Any = None) -> Endpoint:
    try:
        ep = URLS[group][name]
    except KeyError:
        raise KeyError(f"no endpoint {group}.{name}") from None
    if element_id is not None:
        ep = Endpoint(ep.method, ep.url.replace(":id", str(element_id)))
    return ep


class ApiClient:
    def __init__(
        self,
        base_url: str = "",
        api_key: Optional[str] = None,
        *,
        session: Any = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api_key:
            self.session.headers.update({"X-Api-Key": api_key})

    def call(
        self,
        group: str,
        name: str,
        element_id: Any = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        ep = url_for(group, name, element_id)
        return self.request(ep.method, ep.url, data=data, params=params)

    def request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and return the response envelope.
        204 answers come back as {"success": True, "message": "", "data": None}.
        Raises LoginRequiredError on 401 / login=true, ApiError on anything else
        that is not a success.
        """
        url = f"{self.base_url}{path}"
        log.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method, url, json=data, params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ApiError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 204 or not resp.content:
            payload: Any = {"success": True, "message": "", "data": None}
        else:
            try:
                payload = resp.json()
            except ValueError as e:
                raise ApiError(
                    f"{method} {path} returned invalid JSON", resp.status_code
                ) from e

        if not isinstance(payload, dict):
            # grids/trees come back bare
            payload = {"success": True, "message": "", "data": payload}

        message = str(payload.get("message") or "")
        if resp.status_code == 401 or payload.get("login"):
            raise LoginRequiredError(message or "Login required", resp.status_code, payload)
        if resp.status_code >= 400 or payload.get("success") is False:
            raise ApiError(message or f"HTTP {resp.status_code}", resp.status_code, payload)

        if "success" not in payload:
            payload = {"success": True, "message": "", "data": payload}
        payload.setdefault("message", "")
        payload.setdefault("data", None)
        return payload
