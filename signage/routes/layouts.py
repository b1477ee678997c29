# File: signage/routes/layouts.py
from __future__ import annotations
from flask import Blueprint, Response

from .. import layouts
from ..auth import current_user, require_user
from .common import json_ok, json_raw, no_content, request_params

bp = Blueprint("layouts", __name__)


# ── layouts ───────────────────────────────────────────────────────────────────
@bp.get("/layout")
@require_user
def layout_search() -> Response:
    return json_raw(layouts.search(current_user(), request_params()))


@bp.get("/layout/<int:layout_id>")
@require_user
def layout_get(layout_id: int) -> Response:
    return json_ok(layouts.get_layout(current_user(), layout_id))


@bp.get("/layout/status/<int:layout_id>")
@require_user
def layout_status(layout_id: int) -> Response:
    st = layouts.get_status(current_user(), layout_id)
    return json_ok(st, message=st["statusFeedback"])


@bp.post("/layout")
@require_user
def layout_add() -> Response:
    layout = layouts.add(current_user(), request_params())
    return json_ok(layout, message=f"Added {layout['layout']}", id=layout["layoutId"], status=201)


@bp.delete("/layout/<int:layout_id>")
@require_user
def layout_delete(layout_id: int) -> Response:
    layouts.delete(current_user(), layout_id)
    return no_content()


@bp.put("/layout/checkout/<int:layout_id>")
@require_user
def layout_checkout(layout_id: int) -> Response:
    draft = layouts.checkout(current_user(), layout_id)
    return json_ok(draft, message=f"Checked out {draft['layout']}", id=draft["layoutId"])


@bp.put("/layout/publish/<int:layout_id>")
@require_user
def layout_publish(layout_id: int) -> Response:
    layout = layouts.publish(current_user(), layout_id)
    return json_ok(layout, message=f"Published {layout['layout']}", id=layout["layoutId"])


@bp.put("/layout/discard/<int:layout_id>")
@require_user
def layout_discard(layout_id: int) -> Response:
    layout = layouts.discard(current_user(), layout_id)
    return json_ok(layout, message=f"Discarded {layout['layout']}", id=layout["layoutId"])


# ── regions ───────────────────────────────────────────────────────────────────
@bp.post("/region/<int:layout_id>")
@require_user
def region_add(layout_id: int) -> Response:
    region = layouts.add_region(current_user(), layout_id, request_params())
    return json_ok(region, message="Added Region", id=region["regionId"], status=201)


@bp.post("/region/drawer/<int:layout_id>")
@require_user
def drawer_add(layout_id: int) -> Response:
    drawer = layouts.add_drawer(current_user(), layout_id)
    return json_ok(drawer, message="Added drawer", id=drawer["regionId"], status=201)


@bp.put("/region/<int:region_id>")
@require_user
def region_transform(region_id: int) -> Response:
    region = layouts.transform_region(current_user(), region_id, request_params())
    return json_ok(region, message=f"Edited {region['name']}", id=region["regionId"])


@bp.delete("/region/<int:region_id>")
@require_user
def region_delete(region_id: int) -> Response:
    layouts.delete_region(current_user(), region_id)
    return no_content()


# ── playlists/widgets ─────────────────────────────────────────────────────────
@bp.post("/playlist/widget/<int:playlist_id>")
@require_user
def widget_add(playlist_id: int) -> Response:
    widget = layouts.add_widget(current_user(), playlist_id, request_params())
    return json_ok(widget, message=f"Added {widget['type']}", id=widget["widgetId"], status=201)


@bp.put("/playlist/widget/<int:widget_id>")
@require_user
def widget_edit(widget_id: int) -> Response:
    widget = layouts.edit_widget(current_user(), widget_id, request_params())
    return json_ok(widget, message=f"Edited {widget['type']}", id=widget["widgetId"])


@bp.delete("/playlist/widget/<int:widget_id>")
@require_user
def widget_delete(widget_id: int) -> Response:
    layouts.delete_widget(current_user(), widget_id)
    return no_content()


@bp.post("/playlist/order/<int:playlist_id>")
@require_user
def playlist_order(playlist_id: int) -> Response:
    playlist = layouts.order_playlist(current_user(), playlist_id, request_params().get("widgets"))
    return json_ok(playlist, message="Order Changed", id=playlist["playlistId"])
