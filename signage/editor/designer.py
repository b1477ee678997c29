# File: signage/editor/designer.py
"""
LayoutEditor: loads a layout, keeps the object graph in sync with the server
and routes edits through the change manager.

A published layout opens read only; checkout() swaps the editor onto the
draft. publish()/discard() act on the draft's parent.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional

from .client import ApiClient, ApiError, url_for
from .layout import Layout, Region, Widget
from .manager import ChangeError, ChangeManager, ChangeResult

log = logging.getLogger(__name__)

ERROR_MESSAGES = {
    "saveAllChangesFailed": "Save all changes failed!",
    "removeAllChangesFailed": "Remove all changes failed!",
    "listOrderNotChanged": "List order not changed!",
    "playlistOrderSave": "Playlist save order failed!",
    "saveOrderFailed": "Save order failed: %error%",
    "noLayoutLoaded": "No layout loaded",
    "notADraft": "This Layout is not a Draft, please checkout.",
}

MOVE_TYPES = ("oneRight", "oneLeft", "topRight", "topLeft")


class EditorError(Exception):
    pass


class LayoutEditor:
    def __init__(self, api: ApiClient, layout_id: int):
        self.api = api
        self.layout_id = layout_id
        self.layout: Optional[Layout] = None
        self.read_only_mode = True
        self.selected: Optional[Any] = None
        self.manager = ChangeManager(api, layout_id)

    # ── loading ───────────────────────────────────────────────────────────
    def load(self) -> Layout:
        res = self.api.call("layout", "get", self.layout_id)
        return self.reload_data(res["data"])

    def reload(self) -> Layout:
        return self.load()

    def reload_data(self, data: Dict[str, Any]) -> Layout:
        self.layout_id = data["layoutId"]
        self.manager.layout_id = self.layout_id
        self.layout = Layout(self.layout_id, data)
        self.read_only_mode = not self.layout.editable
        return self.layout

    def _require_layout(self) -> Layout:
        if self.layout is None:
            raise EditorError(ERROR_MESSAGES["noLayoutLoaded"])
        return self.layout

    def _require_draft(self) -> Layout:
        layout = self._require_layout()
        if not layout.editable:
            raise EditorError(ERROR_MESSAGES["notADraft"])
        return layout

    def select_object(self, obj: Any = None) -> None:
        self.selected = obj

    def get_element_by_type_and_id(self, element_type: str, element_id: str, aux_id: Optional[str] = None) -> Any:
        layout = self._require_layout()
        if element_type == "layout":
            return layout
        if element_type in ("region", "canvas"):
            return layout.regions.get(element_id)
        if element_type == "drawer":
            return layout.drawer
        if element_type == "widget":
            return layout.get_widget(element_id, aux_id)
        return None

    # ── lifecycle ─────────────────────────────────────────────────────────
    def checkout(self) -> Layout:
        layout = self._require_layout()
        self.select_object()
        res = self.api.call("layout", "checkout", layout.layout_id)
        log.info("%s", res["message"])
        self.read_only_mode = False
        return self.reload_data(res["data"])

    def publish(self) -> Dict[str, Any]:
        """Returns the published layout id and the designer URL for it (view mode)."""
        layout = self._require_draft()
        res = self.api.call("layout", "publish", layout.parent_layout_id)
        published_id = res["data"]["layoutId"]
        log.info("%s", res["message"])
        self.manager.history.clear()
        self.reload_data(res["data"])
        return {
            "layoutId": published_id,
            "url": url_for("layout", "designer", published_id).url + "?vM=1",
        }

    def discard(self) -> ChangeResult:
        layout = self._require_draft()
        self.select_object()
        res = self.api.call("layout", "discard", layout.parent_layout_id)
        self.manager.history.clear()
        self.reload_data(res["data"])
        return ChangeResult(None, res)

    def delete(self) -> ChangeResult:
        layout = self._require_layout()
        self.select_object()
        res = self.api.call("layout", "delete", layout.layout_id)
        self.manager.history.clear()
        self.layout = None
        return ChangeResult(None, res)

    def refresh_status(self) -> Dict[str, Any]:
        layout = self._require_layout()
        res = self.api.call("layout", "status", layout.layout_id)
        st = res["data"]
        layout.update_status(st["status"], st["statusFeedback"], st["statusMessage"], st.get("duration"))
        return layout.status

    # ── elements ──────────────────────────────────────────────────────────
    def add_element(
        self,
        element_type: str,
        position_to_add: Optional[Dict[str, Any]] = None,
        element_subtype: Optional[str] = None,
    ) -> ChangeResult:
        new_values: Optional[Dict[str, Any]] = dict(position_to_add) if position_to_add else None
        if element_type == "region":
            new_values = dict(new_values or {})
            new_values["type"] = element_subtype or "playlist"
        return self.manager.add_change(
            "create", element_type, None, None, new_values, update_target_id=True
        )

    def delete_element(self, element_type: str, element_id: Any, options: Optional[Dict[str, Any]] = None) -> ChangeResult:
        try:
            self.manager.save_all_changes()
        except (ApiError, ChangeError) as e:
            log.error("%s (%s)", ERROR_MESSAGES["saveAllChangesFailed"], e)
            raise EditorError(ERROR_MESSAGES["saveAllChangesFailed"]) from e
        try:
            self.manager.remove_all_changes(element_type, element_id)
        except ChangeError as e:
            log.error("%s (%s)", ERROR_MESSAGES["removeAllChangesFailed"], e)
            raise EditorError(ERROR_MESSAGES["removeAllChangesFailed"]) from e

        self.select_object()
        return self.manager.add_change(
            "delete", element_type, element_id, None, options, add_to_history=False
        )

    def save_playlist_order(self, region: Region, widgets: Iterable[Widget]) -> ChangeResult:
        """`widgets` is the region's widgets in their new order."""
        old_order = {w.widget_id: idx for idx, w in enumerate(region.widgets.values(), start=1)}
        new_order = {w.widget_id: idx for idx, w in enumerate(widgets, start=1)}

        if new_order == old_order:
            return ChangeResult(None, {"success": True, "message": ERROR_MESSAGES["listOrderNotChanged"]})

        try:
            return self.manager.add_change(
                "order",
                "playlist",
                region.playlist_id,
                {"widgets": old_order},
                {"widgets": new_order},
            )
        except ChangeError as e:
            log.error("%s (%s)", ERROR_MESSAGES["playlistOrderSave"], e)
            raise EditorError(e.message) from e

    def move_widget_in_region(self, region_id: str, widget_id: str, move_type: str) -> Optional[ChangeResult]:
        layout = self._require_layout()
        region = layout.regions.get(region_id)
        if region is None or widget_id not in region.widgets:
            raise EditorError(f"{widget_id} is not in {region_id}")

        order: List[str] = list(region.widgets)
        pos = order.index(widget_id)
        if move_type == "oneRight":
            if pos < len(order) - 1:
                order[pos], order[pos + 1] = order[pos + 1], order[pos]
        elif move_type == "oneLeft":
            if pos > 0:
                order[pos], order[pos - 1] = order[pos - 1], order[pos]
        elif move_type == "topRight":
            order.append(order.pop(pos))
        elif move_type == "topLeft":
            order.insert(0, order.pop(pos))
        else:
            log.warning("Change type not known: %s", move_type)
            return None

        try:
            res = self.save_playlist_order(region, [region.widgets[k] for k in order])
        except EditorError as e:
            raise EditorError(ERROR_MESSAGES["saveOrderFailed"].replace("%error%", str(e))) from e
        if res.change is not None:
            self.reload()
        return res
