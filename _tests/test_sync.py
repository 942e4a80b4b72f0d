"""
Tests for slice view viewport handling and the synchronization controller.

Covers echo suppression (no ping-pong), position throttling, POI
propagation and the highlighted map section.

Run with: python -m pytest _tests/test_sync.py -v
"""

import pytest

from gpr_viz.models import Viewport
from gpr_viz.poi_store import PoiStore
from gpr_viz.slice_view import SliceView
from gpr_viz.sync_controller import SyncController
from gpr_viz.track_map_view import TrackMapView
from gpr_viz.viz_config_types import SyncConfig

from conftest import make_poi


@pytest.fixture
def views(dataset, track):
    view_a = SliceView("viewer1")
    view_b = SliceView("viewer2")
    view_a.load(dataset, track)
    view_b.load(dataset, track)
    return view_a, view_b


@pytest.fixture
def track_map(track):
    track_map = TrackMapView()
    track_map.load_track(track)
    return track_map


@pytest.fixture
def store():
    return PoiStore()


@pytest.fixture
def sync(views, track_map, store, clock):
    view_a, view_b = views
    return SyncController(
        view_a, view_b, track_map, store, SyncConfig(position_throttle_ms=50), clock=clock
    )


def _count_applies(view):
    """Wrap apply_external_viewport with a call counter."""
    calls = []
    original = view.apply_external_viewport

    def counting(viewport):
        calls.append(viewport)
        original(viewport)

    view.apply_external_viewport = counting
    return calls


class TestViewportSync:
    def test_one_propagation_and_no_echo(self, views, sync):
        view_a, view_b = views
        applied_to_a = _count_applies(view_a)
        applied_to_b = _count_applies(view_b)
        emitted_by_b = []
        view_b.viewport_changed.subscribe(emitted_by_b.append)

        view_a.handle_relayout({"xaxis.range[0]": 10, "xaxis.range[1]": 40})

        assert len(applied_to_b) == 1
        assert applied_to_a == []
        assert emitted_by_b == []
        assert view_b.current_range().x_range == (10.0, 40.0)

    def test_guard_cleared_after_apply(self, views, sync):
        view_a, view_b = views
        view_a.zoom_in()
        assert not view_a.is_syncing
        assert not view_b.is_syncing

    def test_user_change_on_b_propagates_back_to_a(self, views, sync):
        view_a, view_b = views
        view_b.seek_right(30)
        assert view_a.current_range() == view_b.current_range()

    def test_disabled_sync_does_not_propagate(self, views, sync):
        view_a, view_b = views
        applied_to_b = _count_applies(view_b)
        sync.toggle_sync()

        view_a.zoom_in()

        assert applied_to_b == []
        assert view_b.viewport is None

    def test_autorange_resets_both(self, views, sync):
        view_a, view_b = views
        view_a.zoom_in()
        view_a.handle_relayout({"xaxis.autorange": True, "yaxis.autorange": True})
        assert view_a.viewport is None
        assert view_b.current_range() == view_b.full_viewport()

    def test_relayout_without_axis_keys_ignored(self, views, sync):
        view_a, view_b = views
        emitted = []
        view_a.viewport_changed.subscribe(emitted.append)
        assert view_a.handle_relayout({"dragmode": "pan"}) is None
        assert emitted == []


class TestSliceViewport:
    def test_zoom_in_scales_span_by_point_eight(self, views):
        view_a, _ = views
        full = view_a.full_viewport()
        view_a.zoom_in()
        assert view_a.current_range().x_span == pytest.approx(full.x_span * 0.8)

    def test_zoom_out_scales_span_by_one_point_six(self, views):
        view_a, _ = views
        full = view_a.full_viewport()
        view_a.zoom_out()
        assert view_a.current_range().x_span == pytest.approx(full.x_span * 1.6)

    def test_zoom_keeps_depth_axis_reversed(self, views):
        view_a, _ = views
        view_a.zoom_in()
        y0, y1 = view_a.current_range().y_range
        assert y0 > y1

    def test_seek_moves_by_fifty(self, views):
        view_a, _ = views
        x0, x1 = view_a.full_viewport().x_range
        view_a.seek_right()
        assert view_a.current_range().x_range == (x0 + 50, x1 + 50)
        view_a.seek_left()
        view_a.seek_left()
        assert view_a.current_range().x_range == (x0 - 50, x1 - 50)

    def test_center_on_x_keeps_width(self, views):
        view_a, _ = views
        view_a.handle_relayout({"xaxis.range": [0, 20]})
        view_a.center_on_x(60)
        assert view_a.current_range().x_range == (50.0, 70.0)

    def test_zoom_percentage(self, views):
        view_a, _ = views
        assert view_a.zoom_percentage() == 100
        view_a.handle_relayout({"xaxis.range": [0, 50]})
        assert view_a.zoom_percentage() == 200

    def test_no_dataset_operations_are_noops(self):
        view = SliceView("empty")
        emitted = []
        view.viewport_changed.subscribe(emitted.append)
        view.zoom_in()
        view.seek_left()
        view.reset_viewport()
        assert view.handle_hover(1, 1) is None
        assert view.handle_click(1, 1) is None
        assert emitted == []
        assert view.zoom_percentage() == 100

    def test_figure_applies_viewport(self, views):
        view_a, _ = views
        view_a.apply_external_viewport(Viewport((5, 25), (19.5, -0.5)))
        layout = view_a.to_figure().layout
        assert tuple(layout.xaxis.range) == (5, 25)


class TestPositionSync:
    def test_hover_moves_map_indicator(self, views, track_map, sync):
        view_a, _ = views
        view_a.handle_hover(50, 3)
        assert track_map.position_index == 5

    def test_updates_inside_window_are_dropped(self, views, track_map, sync, clock):
        view_a, _ = views
        view_a.handle_hover(0, 0)
        assert track_map.position_index == 0

        clock.advance_ms(20)
        view_a.handle_hover(50, 0)
        assert track_map.position_index == 0

        clock.advance_ms(40)
        view_a.handle_hover(99, 0)
        assert track_map.position_index == 9

    def test_click_positions_are_forwarded(self, views, track_map, sync):
        _, view_b = views
        view_b.handle_click(50.4, 2.6)
        assert track_map.position_index == 5

    def test_sync_to_track_position_centres_both_views(self, views, track_map, sync):
        view_a, view_b = views
        view_a.handle_relayout({"xaxis.range": [0, 20]})

        slice_x = sync.sync_to_track_position(5)

        # floor(5 / 11 * 100) = 45
        assert slice_x == 45
        assert view_a.current_range().x_range == (35.0, 55.0)
        assert view_b.current_range().x_range == (35.0, 55.0)
        assert track_map.position_index == 5

    def test_sync_to_out_of_range_index_is_noop(self, views, track_map, sync):
        assert sync.sync_to_track_position(999) is None
        assert track_map.position_index is None


class TestVisibleSection:
    def test_zoomed_range_highlights_track_section(self, views, track_map, sync):
        view_a, _ = views
        view_a.handle_relayout({"xaxis.range": [10, 40]})
        # floor(0.1 * 10), floor(0.4 * 10)
        assert track_map.highlight == (1, 4)

    def test_reset_clears_highlight(self, views, track_map, sync):
        view_a, _ = views
        view_a.handle_relayout({"xaxis.range": [10, 40]})
        view_a.reset_viewport()
        assert track_map.highlight is None

    def test_zoom_out_past_full_width_clears_highlight(self, views, track_map, sync):
        view_a, _ = views
        view_a.handle_relayout({"xaxis.range": [10, 40]})
        view_a.reset_viewport()
        view_a.zoom_out()
        assert track_map.highlight is None

    def test_unsynced_view_still_highlights(self, views, track_map, sync):
        _, view_b = views
        sync.toggle_sync()
        view_b.handle_relayout({"xaxis.range": [50, 90]})
        assert track_map.highlight == (5, 9)

    def test_detach_stops_highlighting(self, views, track_map, sync):
        view_a, _ = views
        sync.detach()
        view_a.handle_relayout({"xaxis.range": [10, 40]})
        assert track_map.highlight is None


class TestPoiPropagation:
    def test_store_changes_reach_all_views(self, views, track_map, store, sync):
        view_a, view_b = views
        store.add(make_poi("poi-1"))
        assert [p.id for p in view_a.pois] == ["poi-1"]
        assert [p.id for p in view_b.pois] == ["poi-1"]
        assert [p.id for p in track_map.pois] == ["poi-1"]

        store.delete(0)
        assert view_a.pois == [] and view_b.pois == [] and track_map.pois == []

    def test_detach_stops_propagation(self, views, store, sync):
        view_a, _ = views
        sync.detach()
        store.add(make_poi("poi-1"))
        assert view_a.pois == []
