# File: signage/editor/manager.py
"""
Change manager: the editor's ordered history of edits.

Each change is uploaded to the server (immediately, or later through
save_all_changes) and kept in history so it can be reverted. Uploads are
strictly sequential; the first failure stops the run.
"""
from __future__ import annotations
import copy
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .client import ApiClient, ApiError, LoginRequiredError

log = logging.getLogger(__name__)

TARGET_TYPES = ("layout", "region", "widget", "playlist")

_ids = itertools.count(1)


class ChangeError(Exception):
    def __init__(self, message: str, change: Optional["Change"] = None):
        super().__init__(message)
        self.message = message
        self.change = change


@dataclass
class Change:
    type: str
    target_type: str
    target_id: Any
    old_values: Any = None
    new_values: Any = None
    add_to_history: bool = True
    update_target_id: bool = False
    uploaded: bool = False
    change_id: int = field(default_factory=lambda: next(_ids))
    timestamp: float = field(default_factory=time.time)


@dataclass
class ChangeResult:
    change: Optional[Change]
    response: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return bool(self.response.get("success", True))

    @property
    def message(self) -> str:
        return str(self.response.get("message") or "")

    @property
    def data(self) -> Any:
        return self.response.get("data")


def _body(values: Any) -> Optional[Dict[str, Any]]:
    return dict(values) if values else None


# (change type, target type) -> builds (group, name, id, body) for the request
_Route = Callable[["ChangeManager", Change], Tuple[str, str, Any, Optional[Dict[str, Any]]]]


def _create_region(mgr: "ChangeManager", ch: Change):
    return "region", "create", mgr.layout_id, _body(ch.new_values)


def _create_widget(mgr: "ChangeManager", ch: Change):
    body = dict(ch.new_values or {})
    playlist_id = body.pop("playlistId", None)
    if playlist_id is None:
        raise ChangeError("A widget needs a playlistId", ch)
    return "widget", "create", playlist_id, body


def _delete(group: str) -> _Route:
    def route(mgr: "ChangeManager", ch: Change):
        return group, "delete", ch.target_id, _body(ch.new_values)
    return route


def _order_playlist(mgr: "ChangeManager", ch: Change):
    return "playlist", "order", ch.target_id, _body(ch.new_values)


def _transform_region(mgr: "ChangeManager", ch: Change):
    return "region", "transform", ch.target_id, _body(ch.new_values)


ROUTES: Dict[Tuple[str, str], _Route] = {
    ("create", "region"): _create_region,
    ("create", "widget"): _create_widget,
    ("delete", "region"): _delete("region"),
    ("delete", "widget"): _delete("widget"),
    ("order", "playlist"): _order_playlist,
    ("transform", "region"): _transform_region,
}


class ChangeManager:
    def __init__(self, api: ApiClient, layout_id: Optional[int] = None):
        self.api = api
        self.layout_id = layout_id
        self.history: List[Change] = []

    # ── recording ─────────────────────────────────────────────────────────
    def add_change(
        self,
        change_type: str,
        target_type: str,
        target_id: Any,
        old_values: Any,
        new_values: Any,
        *,
        add_to_history: bool = True,
        update_target_id: bool = False,
        auto_submit: bool = True,
    ) -> ChangeResult:
        if (change_type, target_type) not in ROUTES:
            raise ChangeError(f"Unsupported change {change_type} {target_type}")
        if not add_to_history and not auto_submit:
            raise ChangeError("A change must be kept in history or submitted")
        change = Change(
            type=change_type,
            target_type=target_type,
            target_id=target_id,
            old_values=copy.deepcopy(old_values),
            new_values=copy.deepcopy(new_values),
            add_to_history=add_to_history,
            update_target_id=update_target_id,
        )
        if add_to_history:
            self.history.append(change)
        if not auto_submit:
            return ChangeResult(change)

        try:
            return self.upload_change(change)
        except (ApiError, ChangeError):
            if change in self.history:
                self.history.remove(change)
            raise

    def upload_change(self, change: Change) -> ChangeResult:
        group, name, element_id, body = ROUTES[(change.type, change.target_type)](self, change)
        try:
            res = self.api.call(group, name, element_id, data=body)
        except LoginRequiredError:
            raise
        except ApiError as e:
            log.warning("Change %s %s %s failed: %s", change.type, change.target_type, change.target_id, e.message)
            raise ChangeError(e.message, change) from e

        change.uploaded = True
        if change.update_target_id:
            new_id = res.get("id")
            if new_id is None and isinstance(res.get("data"), dict):
                new_id = res["data"].get(f"{change.target_type}Id")
            change.target_id = new_id
        log.debug("Change %s %s %s uploaded", change.type, change.target_type, change.target_id)
        return ChangeResult(change, res)

    # ── bulk ──────────────────────────────────────────────────────────────
    def pending(self) -> List[Change]:
        return [c for c in self.history if not c.uploaded]

    def save_all_changes(self) -> List[ChangeResult]:
        """Upload every pending change in order; raises on the first failure."""
        results = []
        for change in self.pending():
            results.append(self.upload_change(change))
        return results

    def remove_all_changes(self, target_type: str, target_id: Any) -> int:
        if target_type not in TARGET_TYPES:
            raise ChangeError(f"Unknown target type {target_type}")
        before = len(self.history)
        self.history = [
            c for c in self.history
            if not (c.target_type == target_type and str(c.target_id) == str(target_id))
        ]
        return before - len(self.history)

    def revert_change(self) -> Optional[ChangeResult]:
        """
        Undo the most recent change. A change that never reached the server
        is just dropped; an uploaded one is reversed on the server first and
        only leaves history when that succeeds.
        """
        if not self.history:
            return None
        change = self.history[-1]
        if not change.uploaded:
            self.history.pop()
            return ChangeResult(change, {"success": True, "message": "Change discarded"})

        if change.type == "create":
            ep = (change.target_type, "delete", change.target_id, None)
        elif change.type == "order":
            ep = ("playlist", "order", change.target_id, _body(change.old_values))
        elif change.type == "transform":
            ep = ("region", "transform", change.target_id, _body(change.old_values))
        else:
            raise ChangeError(f"Cannot revert a {change.type} change", change)

        group, name, element_id, body = ep
        try:
            res = self.api.call(group, name, element_id, data=body)
        except LoginRequiredError:
            raise
        except ApiError as e:
            raise ChangeError(e.message, change) from e
        self.history.pop()
        return ChangeResult(change, res)
