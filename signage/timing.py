# signage/timing.py
"""
Duration + loop computation for layouts.

Region duration is the sum of its widget durations, layout duration the
longest region. A one-widget region loops only when its "loop" option is "1";
any other region (empty ones included) loops when it is shorter than the layout.
"""
from __future__ import annotations
from typing import Any, Iterable, Mapping, Optional

# Highest unix timestamp a widget can carry; means "never expires"
DATE_MAX = 2147483647


def parse_float(value: Any) -> float:
    """Permissive float parsing; malformed input counts as 0."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


def option_value(options: Optional[Iterable[Mapping[str, Any]]], name: str) -> Any:
    """Look up `name` in an [{option, value}] list."""
    for opt in options or []:
        if opt.get("option") == name:
            return opt.get("value")
    return None


def widget_duration(widget: Mapping[str, Any]) -> float:
    calculated = widget.get("calculatedDuration")
    if calculated not in (None, ""):
        return parse_float(calculated)
    return parse_float(widget.get("duration"))


def region_duration(widgets: Iterable[Mapping[str, Any]]) -> float:
    return sum(widget_duration(w) for w in widgets)


def layout_duration(region_durations: Iterable[float]) -> float:
    return max((parse_float(d) for d in region_durations), default=0.0)


def region_loops(
    widget_count: int,
    duration: Any,
    layout_total: Any,
    options: Optional[Iterable[Mapping[str, Any]]] = None,
) -> bool:
    if widget_count == 1:
        return str(option_value(options, "loop")) == "1"
    return parse_float(duration) < parse_float(layout_total)


def layout_timing(regions: Iterable[Mapping[str, Any]]) -> dict:
    """
    Timing summary for stored region records (drawers are not passed in).
    Returns {"duration": float, "regions": {regionId: {"duration", "loop", "numWidgets"}}}.
    """
    regions = list(regions)
    durations = {}
    for r in regions:
        widgets = (r.get("regionPlaylist") or {}).get("widgets") or []
        durations[r["regionId"]] = (len(widgets), region_duration(widgets))

    total = layout_duration(d for _, d in durations.values())
    out = {}
    for r in regions:
        count, dur = durations[r["regionId"]]
        out[r["regionId"]] = {
            "duration": dur,
            "numWidgets": count,
            "loop": region_loops(count, dur, total, r.get("regionOptions")),
        }
    return {"duration": total, "regions": out}
