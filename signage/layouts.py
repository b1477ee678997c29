"""
Layouts, regions, drawers, widgets and playlist ordering.

Published layouts are read only. Editing happens on a draft created by
checkout(); publish() copies the draft back onto its parent and discard()
throws the draft away.
"""
from __future__ import annotations
import copy
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from . import settings, storage, timing
from .errors import AccessDeniedError, InvalidArgumentError, NotFoundError
from .models import User

log = logging.getLogger(__name__)

PUBLISHED = 1
DRAFT = 2

REGION_TYPES = ("playlist", "canvas", "frame")

STATUS_READY = 1
STATUS_INVALID = 3


# ── helpers ───────────────────────────────────────────────────────────────────
def _i(v, d=None):
    if v in (None, ""):
        return d
    try:
        return int(v)
    except (TypeError, ValueError):
        return d


def _b(v, d: bool = False) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return v != 0
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("1", "true", "yes", "y", "on"):
            return True
        if s in ("0", "false", "no", "n", "off"):
            return False
    return d


def _options_list(options: Any) -> List[Dict[str, Any]]:
    """Accepts {name: value} or [{option, value}] and returns the list form."""
    if isinstance(options, Mapping):
        return [{"option": str(k), "value": "" if v is None else str(v)} for k, v in options.items()]
    out = []
    for opt in options or []:
        if isinstance(opt, Mapping) and opt.get("option"):
            out.append({"option": str(opt["option"]), "value": "" if opt.get("value") is None else str(opt["value"])})
    return out


def _set_option(options: List[Dict[str, Any]], name: str, value: Any) -> None:
    for opt in options:
        if opt.get("option") == name:
            opt["value"] = str(value)
            return
    options.append({"option": name, "value": str(value)})


def _all_regions(layout: Mapping[str, Any]) -> Iterator[Dict[str, Any]]:
    yield from layout.get("regions") or []
    yield from layout.get("drawers") or []


def _locate_region(db: Dict[str, Any], region_id: int) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    for layout in db["layouts"]:
        for region in _all_regions(layout):
            if region["regionId"] == region_id:
                return layout, region
    raise NotFoundError(f"Region {region_id} not found")


def _locate_playlist(db: Dict[str, Any], playlist_id: int) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    for layout in db["layouts"]:
        for region in _all_regions(layout):
            playlist = region.get("regionPlaylist") or {}
            if playlist.get("playlistId") == playlist_id:
                return layout, playlist
    raise NotFoundError(f"Playlist {playlist_id} not found")


def _locate_widget(db: Dict[str, Any], widget_id: int) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
    for layout in db["layouts"]:
        for region in _all_regions(layout):
            playlist = region.get("regionPlaylist") or {}
            for widget in playlist.get("widgets") or []:
                if widget["widgetId"] == widget_id:
                    return layout, playlist, widget
    raise NotFoundError(f"Widget {widget_id} not found")


def _assert_draft_editable(layout: Mapping[str, Any], user: User) -> None:
    if not user.check_editable(layout) or not user.feature_enabled("layout.modify"):
        raise AccessDeniedError()
    if layout.get("publishedStatusId") != DRAFT:
        raise InvalidArgumentError(
            "This Layout is not a Draft, please checkout.", "layoutId"
        )


def _draft_of(db: Dict[str, Any], layout_id: int) -> Optional[Dict[str, Any]]:
    for layout in db["layouts"]:
        if layout.get("parentId") == layout_id and layout.get("publishedStatusId") == DRAFT:
            return layout
    return None


def _new_playlist(db: Dict[str, Any]) -> Dict[str, Any]:
    return {"playlistId": storage.next_id(db, "playlist"), "widgets": []}


def _new_region(db: Dict[str, Any], region_type: str, params: Mapping[str, Any], layout: Mapping[str, Any]) -> Dict[str, Any]:
    region_id = storage.next_id(db, "region")
    return {
        "regionId": region_id,
        "type": region_type,
        "name": str(params.get("name") or f"{layout.get('layout', '')}-{region_id}"),
        "width": float(params.get("width") or 250),
        "height": float(params.get("height") or 250),
        "top": float(params.get("top") or 0),
        "left": float(params.get("left") or 0),
        "zIndex": _i(params.get("zIndex"), 0),
        "regionOptions": _options_list(params.get("options")),
        "regionPlaylist": _new_playlist(db),
    }


def _renumber(playlist: Dict[str, Any]) -> None:
    for idx, w in enumerate(playlist.get("widgets") or [], start=1):
        w["displayOrder"] = idx


def _clone_regions(db: Dict[str, Any], regions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Deep copy with fresh region/playlist/widget ids (a draft never shares ids with its parent)."""
    out = []
    for src in regions:
        region = copy.deepcopy(src)
        region["regionId"] = storage.next_id(db, "region")
        playlist = region.get("regionPlaylist") or {"widgets": []}
        playlist["playlistId"] = storage.next_id(db, "playlist")
        for w in playlist.get("widgets") or []:
            w["widgetId"] = storage.next_id(db, "widget")
            w["playlistId"] = playlist["playlistId"]
        region["regionPlaylist"] = playlist
        out.append(region)
    # drawer widgets point at region ids; map them onto the clones
    id_map = {s["regionId"]: r["regionId"] for s, r in zip(regions, out)}
    for region in out:
        for w in (region.get("regionPlaylist") or {}).get("widgets") or []:
            for opt in w.get("widgetOptions") or []:
                if opt.get("option") == "targetRegionId" and _i(opt.get("value")) in id_map:
                    opt["value"] = str(id_map[_i(opt.get("value"))])
    return out


def compute_status(layout: Mapping[str, Any]) -> Dict[str, Any]:
    t = timing.layout_timing(layout.get("regions") or [])
    messages: List[str] = []
    if not layout.get("regions"):
        messages.append("Layout has no Regions")
    for region in layout.get("regions") or []:
        if region.get("type") == "playlist" and not t["regions"][region["regionId"]]["numWidgets"]:
            messages.append(f"Empty Region: {region.get('name') or region['regionId']}")
    status = STATUS_INVALID if messages else STATUS_READY
    return {
        "status": status,
        "statusFeedback": "This Layout is invalid" if messages else "This Layout is ready to play",
        "statusMessage": messages,
        "duration": round(t["duration"], 2),
        "regions": t["regions"],
    }


def _public(layout: Mapping[str, Any], user: User) -> Dict[str, Any]:
    data = copy.deepcopy(dict(layout))
    data["id"] = data["layoutId"]
    st = compute_status(layout)
    data["duration"] = st["duration"]
    data["status"] = st["status"]
    data["scheduleNowPermission"] = user.check_editable(layout)
    data["deletePermission"] = user.check_deleteable(layout)
    editable = user.check_editable(layout)
    for region in data.get("regions") or []:
        region["isEditable"] = editable
    return data


# ── layouts ───────────────────────────────────────────────────────────────────
def search(user: User, params: Mapping[str, Any]) -> Dict[str, Any]:
    db = storage.load_db()
    rows = [l for l in db["layouts"] if user.check_viewable(l)]
    if not _b(params.get("showDrafts"), False):
        rows = [l for l in rows if l.get("publishedStatusId") != DRAFT]
    total = len(rows)
    name = str(params.get("layout") or "").strip().lower()
    if name:
        rows = [l for l in rows if name in str(l.get("layout") or "").lower()]
    for key in ("layoutId", "folderId", "parentId", "publishedStatusId"):
        val = _i(params.get(key))
        if val is not None:
            rows = [l for l in rows if l.get(key) == val]
    return {
        "draw": _i(params.get("draw"), 0),
        "recordsTotal": total,
        "recordsFiltered": len(rows),
        "data": [_public(l, user) for l in rows],
    }


def get_layout(user: User, layout_id: int) -> Dict[str, Any]:
    db = storage.load_db()
    layout = storage.get(db, "layouts", layout_id)
    if not user.check_viewable(layout):
        raise AccessDeniedError()
    return _public(layout, user)


def get_status(user: User, layout_id: int) -> Dict[str, Any]:
    db = storage.load_db()
    layout = storage.get(db, "layouts", layout_id)
    if not user.check_viewable(layout):
        raise AccessDeniedError()
    return compute_status(layout)


def add(user: User, params: Mapping[str, Any]) -> Dict[str, Any]:
    if not user.feature_enabled("layout.add"):
        raise AccessDeniedError()
    name = str(params.get("name") or params.get("layout") or "").strip()
    if not name:
        raise InvalidArgumentError("Layout Name must be between 1 and 100 characters", "name")
    width = _i(params.get("width"), 1920)
    height = _i(params.get("height"), 1080)
    if not width or not height or width <= 0 or height <= 0:
        raise InvalidArgumentError("Layout width and height must be positive", "width")

    with storage.transaction() as db:
        fid = _i(params.get("folderId"), settings.ROOT_FOLDER_ID)
        folder = storage.get(db, "folders", fid)
        if not user.check_viewable(folder):
            raise AccessDeniedError()
        layout = {
            "layoutId": storage.next_id(db, "layout"),
            "layout": name,
            "publishedStatusId": PUBLISHED,
            "parentId": None,
            "campaignId": storage.next_id(db, "campaign"),
            "folderId": fid,
            "ownerId": user.user_id,
            "permissions": {},
            "width": width,
            "height": height,
            "backgroundColor": str(params.get("backgroundColor") or "#000000"),
            "backgroundImageId": _i(params.get("backgroundImageId")),
            "code": str(params.get("code") or ""),
            "actions": [],
            "regions": [],
            "drawers": [],
        }
        layout["regions"].append(
            _new_region(db, "playlist", {"width": width, "height": height}, layout)
        )
        db["layouts"].append(layout)
    log.info("Layout %s (%s) added by user %s", layout["layoutId"], name, user.user_id)
    return _public(layout, user)


def delete(user: User, layout_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout = storage.get(db, "layouts", layout_id)
        if not user.check_deleteable(layout) or not user.feature_enabled("layout.modify"):
            raise AccessDeniedError()
        draft = _draft_of(db, layout["layoutId"])
        if draft is not None:
            storage.remove(db, "layouts", draft["layoutId"])
        storage.remove(db, "layouts", layout["layoutId"])
    log.info("Layout %s deleted by user %s", layout_id, user.user_id)
    return _public(layout, user)


def checkout(user: User, layout_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout = storage.get(db, "layouts", layout_id)
        if not user.check_editable(layout) or not user.feature_enabled("layout.modify"):
            raise AccessDeniedError()
        if layout.get("publishedStatusId") == DRAFT:
            raise InvalidArgumentError("Layout is already checked out", "statusId")
        draft = _draft_of(db, layout["layoutId"])
        if draft is None:
            draft = copy.deepcopy(layout)
            draft.update(
                {
                    "layoutId": storage.next_id(db, "layout"),
                    "publishedStatusId": DRAFT,
                    "parentId": layout["layoutId"],
                    "regions": _clone_regions(db, layout.get("regions") or []),
                    "drawers": _clone_regions(db, layout.get("drawers") or []),
                }
            )
            db["layouts"].append(draft)
            log.info("Layout %s checked out as draft %s", layout_id, draft["layoutId"])
    return _public(draft, user)


def publish(user: User, layout_id: int) -> Dict[str, Any]:
    """`layout_id` is the published parent; its draft replaces the parent contents."""
    with storage.transaction() as db:
        parent = storage.get(db, "layouts", layout_id)
        if not user.check_editable(parent) or not user.feature_enabled("layout.modify"):
            raise AccessDeniedError()
        draft = _draft_of(db, parent["layoutId"])
        if draft is None:
            raise InvalidArgumentError("Layout is not checked out", "statusId")
        for key in ("layout", "width", "height", "backgroundColor", "backgroundImageId", "code", "actions", "regions", "drawers"):
            parent[key] = copy.deepcopy(draft.get(key))
        storage.remove(db, "layouts", draft["layoutId"])
    log.info("Layout %s published from draft %s", layout_id, draft["layoutId"])
    return _public(parent, user)


def discard(user: User, layout_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        parent = storage.get(db, "layouts", layout_id)
        if not user.check_editable(parent) or not user.feature_enabled("layout.modify"):
            raise AccessDeniedError()
        draft = _draft_of(db, parent["layoutId"])
        if draft is None:
            raise InvalidArgumentError("Layout is not checked out", "statusId")
        storage.remove(db, "layouts", draft["layoutId"])
    return _public(parent, user)


# ── regions ───────────────────────────────────────────────────────────────────
def add_region(user: User, layout_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    region_type = str(params.get("type") or "playlist").strip().lower()
    if region_type not in REGION_TYPES:
        raise InvalidArgumentError(f"Unknown region type {region_type}", "type")
    with storage.transaction() as db:
        layout = storage.get(db, "layouts", layout_id)
        _assert_draft_editable(layout, user)
        if region_type == "canvas" and any(r.get("type") == "canvas" for r in layout["regions"]):
            raise InvalidArgumentError("Layout already has a canvas", "type")
        region = _new_region(db, region_type, params, layout)
        layout["regions"].append(region)
    return copy.deepcopy(region)


def add_drawer(user: User, layout_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout = storage.get(db, "layouts", layout_id)
        _assert_draft_editable(layout, user)
        if layout.get("drawers"):
            raise InvalidArgumentError("Layout already has a drawer", "type")
        drawer = _new_region(
            db,
            "drawer",
            {"width": layout["width"], "height": layout["height"], "name": "drawer"},
            layout,
        )
        layout["drawers"] = [drawer]
    return copy.deepcopy(drawer)


def transform_region(user: User, region_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout, region = _locate_region(db, region_id)
        _assert_draft_editable(layout, user)
        for key in ("width", "height", "top", "left"):
            if params.get(key) not in (None, ""):
                val = timing.parse_float(params.get(key))
                if key in ("width", "height") and val <= 0:
                    raise InvalidArgumentError(f"{key} must be positive", key)
                region[key] = val
        if params.get("zIndex") not in (None, ""):
            region["zIndex"] = _i(params.get("zIndex"), region.get("zIndex", 0))
        if params.get("name"):
            region["name"] = str(params["name"])
        if "loop" in params:
            _set_option(region.setdefault("regionOptions", []), "loop", 1 if _b(params.get("loop")) else 0)
    return copy.deepcopy(region)


def delete_region(user: User, region_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout, region = _locate_region(db, region_id)
        _assert_draft_editable(layout, user)
        layout["regions"] = [r for r in layout["regions"] if r["regionId"] != region_id]
        layout["drawers"] = [r for r in layout.get("drawers") or [] if r["regionId"] != region_id]
    return copy.deepcopy(region)


# ── widgets ───────────────────────────────────────────────────────────────────
def add_widget(user: User, playlist_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    widget_type = str(params.get("type") or "").strip()
    if not widget_type:
        raise InvalidArgumentError("Please provide a widget type", "type")
    duration = timing.parse_float(params.get("duration") if params.get("duration") not in (None, "") else 10)
    if duration < 0:
        raise InvalidArgumentError("Duration must be 0 or above", "duration")
    with storage.transaction() as db:
        layout, playlist = _locate_playlist(db, playlist_id)
        _assert_draft_editable(layout, user)
        widget = {
            "widgetId": storage.next_id(db, "widget"),
            "playlistId": playlist_id,
            "type": widget_type,
            "duration": duration,
            "useDuration": 1 if _b(params.get("useDuration"), False) else 0,
            "calculatedDuration": duration,
            "displayOrder": len(playlist["widgets"]) + 1,
            "fromDt": _i(params.get("fromDt"), 0),
            "toDt": _i(params.get("toDt"), timing.DATE_MAX),
            "widgetOptions": _options_list(params.get("options")),
        }
        playlist["widgets"].append(widget)
    return copy.deepcopy(widget)


def edit_widget(user: User, widget_id: int, params: Mapping[str, Any]) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout, _playlist, widget = _locate_widget(db, widget_id)
        _assert_draft_editable(layout, user)
        if params.get("duration") not in (None, ""):
            duration = timing.parse_float(params.get("duration"))
            if duration < 0:
                raise InvalidArgumentError("Duration must be 0 or above", "duration")
            widget["duration"] = duration
            widget["calculatedDuration"] = duration
        if "useDuration" in params:
            widget["useDuration"] = 1 if _b(params.get("useDuration")) else 0
        for key in ("fromDt", "toDt"):
            if key in params:
                widget[key] = _i(params.get(key), 0 if key == "fromDt" else timing.DATE_MAX)
        if "options" in params:
            opts = widget.setdefault("widgetOptions", [])
            for opt in _options_list(params.get("options")):
                _set_option(opts, opt["option"], opt["value"])
    return copy.deepcopy(widget)


def delete_widget(user: User, widget_id: int) -> Dict[str, Any]:
    with storage.transaction() as db:
        layout, playlist, widget = _locate_widget(db, widget_id)
        _assert_draft_editable(layout, user)
        playlist["widgets"] = [w for w in playlist["widgets"] if w["widgetId"] != widget_id]
        _renumber(playlist)
    return copy.deepcopy(widget)


def order_playlist(user: User, playlist_id: int, widgets: Any) -> Dict[str, Any]:
    """`widgets` maps widgetId -> 1-based position and must name every widget of the playlist."""
    if not isinstance(widgets, Mapping) or not widgets:
        raise InvalidArgumentError("Please provide the widget order", "widgets")
    order: Dict[int, int] = {}
    for wid, pos in widgets.items():
        iw, ip = _i(wid), _i(pos)
        if iw is None or ip is None:
            raise InvalidArgumentError("Widget order must map widget ids to positions", "widgets")
        order[iw] = ip
    with storage.transaction() as db:
        layout, playlist = _locate_playlist(db, playlist_id)
        _assert_draft_editable(layout, user)
        current = {w["widgetId"] for w in playlist["widgets"]}
        if set(order) != current:
            raise InvalidArgumentError("Widget order does not match the playlist", "widgets")
        playlist["widgets"].sort(key=lambda w: order[w["widgetId"]])
        _renumber(playlist)
    return copy.deepcopy(playlist)
