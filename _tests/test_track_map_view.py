"""
Tests for the track map view and its Plotly figure.

Run with: python -m pytest _tests/test_track_map_view.py -v
"""

import pytest

from gpr_viz.models import TrackPoint
from gpr_viz.track_map_view import MAX_ZOOM, MIN_ZOOM, TrackMapView

from conftest import make_poi, make_track


@pytest.fixture
def track_map(track):
    view = TrackMapView()
    view.load_track(track)
    return view


def _trace_names(figure):
    return [trace.name for trace in figure.data]


class TestMileMarkers:
    def test_first_point_past_each_whole_mile(self, track_map, track):
        # 0.5 miles per step -> miles 1..5 at indices 2, 4, 6, 8, 10
        markers = track_map.mile_markers()
        assert [mile for mile, _ in markers] == [1, 2, 3, 4, 5]
        assert [p.index for _, p in markers] == [2, 4, 6, 8, 10]

    def test_no_marker_at_mile_zero(self):
        view = TrackMapView()
        view.load_track(make_track(n=5, miles_per_step=0.1))
        assert view.mile_markers() == []

    def test_skipped_miles_get_single_marker(self):
        view = TrackMapView()
        view.load_track(make_track(n=3, miles_per_step=2.5))
        # distances 0, 2.5, 5.0
        assert [mile for mile, _ in view.mile_markers()] == [2, 5]


class TestPositionIndicator:
    def test_update_in_range(self, track_map, track):
        assert track_map.update_position_indicator(4) is True
        assert track_map.current_position() is track[4]

    @pytest.mark.parametrize("index", [-1, 11, 500])
    def test_out_of_range_is_noop(self, track_map, index):
        track_map.update_position_indicator(2)
        assert track_map.update_position_indicator(index) is False
        assert track_map.position_index == 2

    def test_load_clears_position_and_highlight(self, track_map, track):
        track_map.update_position_indicator(3)
        track_map.highlight_section(1, 4)
        track_map.load_track(track)
        assert track_map.position_index is None
        assert track_map.highlight is None


class TestMapEvents:
    def test_click_near_track_emits_nearest(self, track_map, track):
        clicked = []
        track_map.position_clicked.subscribe(clicked.append)
        nearest = track_map.handle_click(track[7].lat, track[7].lon)
        assert nearest.index == 7
        assert clicked == [nearest]

    def test_click_far_from_track_emits_nothing(self, track_map):
        clicked = []
        track_map.position_clicked.subscribe(clicked.append)
        assert track_map.handle_click(10.0, 10.0) is None
        assert clicked == []

    def test_hover_emits_and_formats(self, track_map):
        hovered = []
        track_map.hovered.subscribe(hovered.append)
        text = track_map.handle_hover(43.000001, -81.0)
        assert hovered == [(43.000001, -81.0)]
        assert text == "Hover: 43.00000, -81.00000"


class TestCamera:
    def test_fit_bounds_pads_box_and_centres(self, track_map):
        box = track_map.fit_bounds()
        assert box["south"] == pytest.approx(43.0 - 0.002)
        assert box["north"] == pytest.approx(43.01 + 0.002)
        assert track_map.center == pytest.approx((43.005, -80.995))
        assert MIN_ZOOM <= track_map.zoom <= MAX_ZOOM

    def test_wider_track_gets_smaller_zoom(self, track_map):
        narrow_zoom = track_map.zoom
        wide = TrackMapView()
        wide.load_track(
            [TrackPoint(p.index, p.lat, p.lon + p.index * 0.05, 0, 0) for p in make_track()]
        )
        assert wide.zoom < narrow_zoom

    def test_fit_bounds_without_track(self):
        assert TrackMapView().fit_bounds() is None

    def test_toggle_markers(self, track_map):
        assert track_map.toggle_markers() is False
        assert "Mile markers" not in _trace_names(track_map.to_figure())
        assert track_map.toggle_markers() is True
        assert "Mile markers" in _trace_names(track_map.to_figure())


class TestFigure:
    def test_full_figure(self, track_map):
        track_map.set_pois([make_poi("poi-1")])
        track_map.update_position_indicator(5)
        track_map.highlight_section(2, 6)

        names = _trace_names(track_map.to_figure())

        for expected in ["GPS Track", "Start", "End", "Mile markers", "POIs", "Highlight", "Current Position"]:
            assert expected in names

    def test_inverted_highlight_clears(self, track_map):
        track_map.highlight_section(6, 2)
        assert track_map.highlight is None

    def test_empty_map_figure(self):
        figure = TrackMapView().to_figure()
        assert len(figure.data) == 0
        assert figure.layout.map.style == "carto-darkmatter"

    def test_track_info(self, track_map, track):
        info = track_map.track_info()
        assert info.total_points == len(track)
        assert info.total_distance_miles == track[-1].distance_miles
        assert info.start_time == track[0].timestamp
