# File: signage/editor/layout.py
"""
In-memory object graph of a layout as the editor sees it.

Built from the JSON returned by GET /layout/{id}: regions are keyed
"region_{regionId}", widgets "widget_{regionId}_{widgetId}". Timing follows
signage.timing so the editor and the server agree on durations and loops.
"""
from __future__ import annotations
import copy
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .. import settings, timing
from .client import url_for

DRAFT = 2


def _fmt_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, settings.TZ).strftime("%Y-%m-%d %H:%M")


class Widget:
    def __init__(self, widget_id: int, data: Mapping[str, Any], region_id: int):
        self.widget_id = widget_id
        self.id = f"widget_{region_id}_{widget_id}"
        self.region_id = f"region_{region_id}"
        self.playlist_id = data.get("playlistId")
        self.type = data.get("type") or ""
        self.duration = data.get("duration")
        self.calculated_duration = data.get("calculatedDuration")
        self.use_duration = data.get("useDuration")
        self.from_dt = int(data.get("fromDt") or 0)
        to_dt = data.get("toDt")
        self.to_dt = int(to_dt) if to_dt not in (None, "") else timing.DATE_MAX
        self.widget_options: List[Dict[str, Any]] = list(data.get("widgetOptions") or [])

        self.index = 0
        self.is_sortable = False
        self.drawer_widget = False
        self.target_region_id: Optional[str] = None
        self.single_widget = False
        self.loop = False
        self.is_expired = False
        self.expire_status = ""
        self.enabled = True

    def get_options(self) -> Dict[str, Any]:
        return {o.get("option"): o.get("value") for o in self.widget_options if o.get("option")}

    def get_duration(self) -> float:
        return timing.widget_duration(
            {"calculatedDuration": self.calculated_duration, "duration": self.duration}
        )

    def get_total_duration(self) -> float:
        return self.get_duration()

    def calculate_expire_status(self, now: Optional[float] = None) -> None:
        now = time.time() if now is None else now
        self.is_expired = False
        self.expire_status = ""
        if 0 < self.to_dt < timing.DATE_MAX:
            if self.to_dt <= now:
                self.is_expired = True
                self.expire_status = f"Expired {_fmt_ts(self.to_dt)}"
            else:
                self.expire_status = f"Expires {_fmt_ts(self.to_dt)}"
        if not self.is_expired and self.from_dt > now:
            self.expire_status = f"Starts {_fmt_ts(self.from_dt)}"

    def check_if_enabled(self, now: Optional[float] = None) -> None:
        now = time.time() if now is None else now
        self.enabled = not self.is_expired and self.from_dt <= now

    def __repr__(self) -> str:
        return f"<Widget {self.id} {self.type} {self.get_duration():g}s>"


class Region:
    is_canvas = False

    def __init__(self, region_id: int, data: Mapping[str, Any]):
        self.region_id = region_id
        self.id = f"region_{region_id}"
        self.type = data.get("type") or "playlist"
        self.name = data.get("name") or ""
        self.dimensions = {
            "width": data.get("width"),
            "height": data.get("height"),
            "top": data.get("top"),
            "left": data.get("left"),
        }
        self.z_index = data.get("zIndex", 0)
        self.options: List[Dict[str, Any]] = list(data.get("regionOptions") or [])
        self.playlists: Dict[str, Any] = dict(data.get("regionPlaylist") or {"widgets": []})
        self.playlists.setdefault("widgets", [])
        self.playlists["regionId"] = region_id
        self.is_editable = bool(data.get("isEditable", False))

        self.widgets: Dict[str, Widget] = {}
        self.is_empty = True
        self.loop = False
        self.duration = 0.0
        self.index = 0
        self.num_widgets = 0
        self.scaled_dimensions: Dict[str, float] = {}

    @property
    def playlist_id(self) -> Optional[int]:
        return self.playlists.get("playlistId")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} widgets={self.num_widgets}>"


class Canvas(Region):
    is_canvas = True


class Layout:
    def __init__(self, layout_id: int, data: Mapping[str, Any], *, now: Optional[float] = None):
        self.editable = data.get("publishedStatusId") == DRAFT
        self.schedule_now_permission = bool(data.get("scheduleNowPermission"))
        self.delete_permission = bool(data.get("deletePermission"))
        self.parent_layout_id = data.get("parentId")
        self.name = data.get("layout") or ""
        self.id = f"layout_{layout_id}"
        self.layout_id = layout_id
        self.folder_id = data.get("folderId")
        self.campaign_id = data.get("campaignId")
        self.width = data.get("width")
        self.height = data.get("height")
        self.background_image = data.get("backgroundImageId")
        self.background_color = data.get("backgroundColor")
        self.code = data.get("code")
        self.actions = data.get("actions") or []

        self.regions: Dict[str, Region] = {}
        self.canvas: Optional[Region] = None
        self.drawer: Optional[Region] = None
        self.duration = 0.0
        self.num_regions = 0
        self.status: Dict[str, Any] = {}
        self.scaled_dimensions: Dict[str, float] = {}
        self.calculated_background: Optional[str] = None

        self._create_data_structure(data, now)
        self.calculate_time_values()

    # ── construction ──────────────────────────────────────────────────────
    def _create_data_structure(self, data: Mapping[str, Any], now: Optional[float]) -> None:
        regions = data.get("regions") or []
        self.num_regions = len(regions)
        layout_duration = 0.0

        for idx, rdata in enumerate(regions, start=1):
            is_playlist = (rdata.get("type") or "playlist") == "playlist"
            region = (Region if is_playlist else Canvas)(rdata["regionId"], rdata)
            region.index = idx
            widgets = region.playlists["widgets"]
            region.num_widgets = len(widgets)

            region_duration = 0.0
            for widx, wdata in enumerate(widgets, start=1):
                widget = Widget(wdata["widgetId"], wdata, region.region_id)
                widget.index = widx
                widget.is_sortable = region.is_editable
                widget.calculate_expire_status(now)
                widget.check_if_enabled(now)
                region.widgets[widget.id] = widget
                region.is_empty = False
                region_duration += widget.get_total_duration()

            region.duration = region_duration
            self.regions[region.id] = region
            if not is_playlist:
                self.canvas = region
            layout_duration = max(layout_duration, region_duration)

        for ddata in data.get("drawers") or []:
            self._create_drawer(ddata, now)

        self.duration = layout_duration

    def _create_drawer(self, data: Mapping[str, Any], now: Optional[float]) -> None:
        drawer = Region(data["regionId"], data)
        drawer.index = 1
        widgets = drawer.playlists["widgets"]
        drawer.num_widgets = len(widgets)
        for widx, wdata in enumerate(widgets, start=1):
            widget = Widget(wdata["widgetId"], wdata, drawer.region_id)
            widget.index = widx
            widget.drawer_widget = True
            widget.calculate_expire_status(now)
            widget.check_if_enabled(now)
            # the action target may have been deleted since
            target = widget.get_options().get("targetRegionId")
            if target not in (None, "") and f"region_{target}" in self.regions:
                widget.target_region_id = str(target)
            drawer.widgets[widget.id] = widget
            drawer.is_empty = False
        self.drawer = drawer

    def calculate_time_values(self) -> None:
        for region in self.regions.values():
            count = len(region.widgets)
            region.loop = timing.region_loops(count, region.duration, self.duration, region.options)
            single = count == 1
            for widget in region.widgets.values():
                widget.single_widget = single
                widget.loop = single and region.loop

    # ── status / presentation ─────────────────────────────────────────────
    def update_status(
        self,
        status: int,
        status_feedback: str,
        status_messages: List[str],
        updated_duration: Any = None,
    ) -> None:
        self.status = {
            "code": status,
            "description": status_feedback,
            "messages": list(status_messages or []),
        }
        if updated_duration:
            self.duration = round(timing.parse_float(updated_duration), 2)

    def background_css(self, width: Any = None, height: Any = None) -> str:
        width = self.width if width is None else width
        height = self.height if height is None else height
        if self.background_image is None:
            return str(self.background_color)
        link = url_for("layout", "downloadBackground", self.layout_id).url
        return (
            f"url('{link}?preview=1&width={width}&height={height}"
            f"&proportional=0&layoutBackgroundId={self.background_image}')"
            f" top center no-repeat; background-color: {self.background_color}"
        )

    def scale(self, container_width: float, container_height: float) -> "Layout":
        """Copy of the layout fitted and centred in a container; self is left untouched."""
        clone = copy.copy(self)
        clone.regions = {k: copy.copy(r) for k, r in self.regions.items()}
        if self.canvas is not None:
            clone.canvas = clone.regions[self.canvas.id]

        element_ratio = self.width / self.height
        container_ratio = container_width / container_height
        if element_ratio > container_ratio:
            factor = container_width / self.width
        else:
            factor = container_height / self.height

        sw, sh = self.width * factor, self.height * factor
        clone.scaled_dimensions = {
            "scale": factor,
            "width": sw,
            "height": sh,
            "top": container_height / 2 - sh / 2,
            "left": container_width / 2 - sw / 2,
        }
        clone.calculated_background = clone.background_css(sw, sh)

        for region in clone.regions.values():
            region.scaled_dimensions = {
                k: (timing.parse_float(v) * factor) for k, v in region.dimensions.items()
            }
        return clone

    # ── lookups ───────────────────────────────────────────────────────────
    def get_widget(self, widget_id: str, region_id: Optional[str] = None) -> Optional[Widget]:
        regions = [self.regions[region_id]] if region_id in self.regions else list(self.regions.values())
        if self.drawer is not None and region_id in (None, self.drawer.id):
            regions.append(self.drawer)
        for region in regions:
            if widget_id in region.widgets:
                return region.widgets[widget_id]
        return None

    def __repr__(self) -> str:
        return f"<Layout {self.id} regions={self.num_regions} duration={self.duration:g}>"
