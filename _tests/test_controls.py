"""
Tests for query validation and the UI controller.

Run with: python -m pytest _tests/test_controls.py -v
"""

import pytest

from gpr_viz.controls import (
    CONNECTED_TEXT,
    DEMO_MODE_TEXT,
    UIController,
    validate_query,
)
from gpr_viz.models import PoiType, QueryValidationError
from gpr_viz.poi_store import PoiStore
from gpr_viz.slice_view import SliceView
from gpr_viz.sync_controller import SyncController
from gpr_viz.track_map_view import TrackMapView


@pytest.fixture
def controller(dataset, track, clock):
    viewer1, viewer2 = SliceView("viewer1"), SliceView("viewer2")
    viewer1.load(dataset, track)
    viewer2.load(dataset, track)
    track_map = TrackMapView()
    track_map.load_track(track)
    sync = SyncController(viewer1, viewer2, track_map, PoiStore(), clock=clock)
    return UIController(viewer1, viewer2, track_map, sync)


class TestValidateQuery:
    def test_valid_form(self, valid_form):
        params = validate_query(valid_form)
        assert params.date == "2025-06-15"
        assert params.start_lat == 43.0
        assert params.end_lon == -80.99
        assert params.zoom_level == 1

    @pytest.mark.parametrize("date", ["", None, "   "])
    def test_missing_date(self, valid_form, date):
        with pytest.raises(QueryValidationError, match="Please select a date"):
            validate_query({**valid_form, "date": date})

    @pytest.mark.parametrize("value", ["", "abc", None, "nan", "inf"])
    def test_invalid_coordinate(self, valid_form, value):
        with pytest.raises(QueryValidationError, match="Please enter valid coordinates"):
            validate_query({**valid_form, "end_lat": value})

    def test_missing_coordinate(self, valid_form):
        form = dict(valid_form)
        del form["start_lon"]
        with pytest.raises(QueryValidationError):
            validate_query(form)

    def test_query_params_split(self, valid_form):
        params = validate_query({**valid_form, "zoom_level": "3"})
        assert params.slice_params()["zoom_level"] == 3
        assert "zoom_level" not in params.track_params()

    def test_validation_error_is_value_error(self, valid_form):
        with pytest.raises(ValueError):
            validate_query({**valid_form, "date": ""})


class TestActiveViewer:
    def test_both_viewers_by_default(self, controller):
        controller.zoom_in()
        assert controller.viewers["viewer1"].viewport is not None
        assert controller.viewers["viewer2"].viewport is not None

    def test_single_viewer_with_sync_off(self, controller):
        controller.toggle_sync()
        controller.set_active_viewer("viewer2")
        controller.seek_right()
        assert controller.viewers["viewer1"].viewport is None
        assert controller.viewers["viewer2"].viewport is not None

    def test_unknown_viewer_rejected(self, controller):
        with pytest.raises(ValueError):
            controller.set_active_viewer("viewer3")


class TestKeyboard:
    @pytest.mark.parametrize("key", ["+", "="])
    def test_zoom_in_keys(self, controller, key):
        assert controller.handle_key(key) is True
        assert controller.zoom_display() == "125%"

    def test_zoom_out_then_reset(self, controller):
        controller.handle_key("-")
        assert controller.viewers["viewer1"].viewport is not None
        controller.handle_key("0")
        assert controller.viewers["viewer1"].viewport is None

    def test_arrow_keys_seek(self, controller):
        controller.handle_key("ArrowRight")
        assert controller.viewers["viewer1"].current_range().x_range[0] == pytest.approx(49.5)
        controller.handle_key("ArrowLeft")
        assert controller.viewers["viewer1"].current_range().x_range[0] == pytest.approx(-0.5)

    def test_ctrl_s_toggles_sync(self, controller):
        assert controller.sync.enabled is True
        assert controller.handle_key("s", ctrl=True) is True
        assert controller.sync.enabled is False
        assert controller.status == "Sync disabled"

    def test_unbound_keys(self, controller):
        assert controller.handle_key("x") is False
        assert controller.handle_key("z", ctrl=True) is False

    def test_dispatch_unknown_action(self, controller):
        with pytest.raises(ValueError):
            controller.dispatch("explode")


class TestInfoPanels:
    def test_cursor_info_follows_hover(self, controller):
        controller.viewers["viewer1"].handle_hover(50, 10, 128.0)
        info = controller.cursor_info
        assert info["position"] == "X: 50, Y: 10"
        assert info["intensity"] == "128.0"
        assert info["depth"] == "2.50 m"
        assert info["mile"] == "2.50"

    def test_poi_mode_and_type(self, controller):
        assert controller.set_poi_type("void") is PoiType.VOID
        assert controller.set_poi_type("bogus") is PoiType.OTHER
        assert controller.toggle_poi_mode() is True
        assert controller.toggle_poi_mode() is False

    def test_connection_text(self, controller):
        controller.set_connection_status(True)
        assert controller.connection_status == CONNECTED_TEXT
        controller.set_connection_status(False)
        assert controller.connection_status == DEMO_MODE_TEXT

    def test_map_hover_text(self, controller):
        controller.track_map.handle_hover(43.1, -81.2)
        assert controller.map_cursor == "43.10000, -81.20000"

    def test_as_dict_is_plain(self, controller):
        state = controller.as_dict()
        assert state["active_viewer"] == "both"
        assert state["sync_enabled"] is True
        assert state["zoom"] == "100%"
