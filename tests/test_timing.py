# tests/test_timing.py
from signage import timing

LOOP_ON = [{"option": "loop", "value": "1"}]
LOOP_OFF = [{"option": "loop", "value": "0"}]


def _region(region_id, durations, options=None):
    return {
        "regionId": region_id,
        "regionOptions": options or [],
        "regionPlaylist": {"widgets": [{"widgetId": n, "duration": d} for n, d in enumerate(durations)]},
    }


def test_widget_duration_prefers_calculated():
    assert timing.widget_duration({"duration": 10, "calculatedDuration": 25}) == 25
    assert timing.widget_duration({"duration": "12.5"}) == 12.5
    assert timing.widget_duration({"duration": "abc"}) == 0
    assert timing.widget_duration({}) == 0


def test_region_and_layout_duration():
    assert timing.region_duration([{"duration": 5}, {"duration": "7"}]) == 12
    assert timing.layout_duration([12, 30, 4]) == 30
    assert timing.layout_duration([]) == 0


def test_single_widget_loops_only_with_option():
    assert timing.region_loops(1, 10, 10, LOOP_ON) is True
    assert timing.region_loops(1, 5, 60, LOOP_OFF) is False
    assert timing.region_loops(1, 5, 60, []) is False


def test_multi_widget_loops_when_shorter_than_layout():
    assert timing.region_loops(2, 20, 30) is True
    assert timing.region_loops(3, 30, 30) is False
    # the loop option only matters for one-widget regions
    assert timing.region_loops(2, 30, 30, LOOP_ON) is False


def test_empty_region_loops_when_shorter_than_layout():
    assert timing.region_loops(0, 0, 30) is True
    # the loop option is ignored for empty regions too
    assert timing.region_loops(0, 0, 30, LOOP_OFF) is True
    # a layout made of empty regions has nothing to fill
    assert timing.region_loops(0, 0, 0) is False


def test_layout_timing_summary():
    t = timing.layout_timing([
        _region(1, [10, 20]),
        _region(2, [60], LOOP_ON),
        _region(3, [5, 5]),
        _region(4, []),
    ])
    assert t["duration"] == 60
    regions = t["regions"]
    assert regions[1] == {"duration": 30, "numWidgets": 2, "loop": True}
    assert regions[2]["loop"] is True
    assert regions[3]["loop"] is True
    assert regions[4] == {"duration": 0, "numWidgets": 0, "loop": True}
