#!/usr/bin/env python3
"""
UI Controller - Toolbar, Keyboard and Status State

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Everything the page's sidebar and toolbar show or trigger
that is not owned by a view: active viewer selection, zoom/seek/reset
dispatch, POI placement mode, keyboard shortcuts, and the status /
connection / cursor / track / viewer info texts.

Also hosts validate_query(), the gate in front of every backend load.

Keyboard Shortcuts:
    + or =      zoom in (active viewers)
    -           zoom out
    0           reset view
    ArrowLeft   seek left
    ArrowRight  seek right
    Ctrl+s      toggle viewport sync

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from gpr_viz.models import (
    PoiType,
    QueryParams,
    QueryValidationError,
    SlicePosition,
    TrackInfo,
)
from gpr_viz.slice_view import SliceView
from gpr_viz.sync_controller import SyncController
from gpr_viz.track_map_view import TrackMapView

logger = logging.getLogger(__name__)

ACTIVE_VIEWERS = ("both", "viewer1", "viewer2")

CONNECTED_TEXT = "● Connected"
DEMO_MODE_TEXT = "● Demo Mode"


# ═══════════════════════════════════════════════════════════════════════════
# 🔎 QUERY VALIDATION
# ═══════════════════════════════════════════════════════════════════════════


def validate_query(form: Mapping[str, Any]) -> QueryParams:
    """
    Validate the query form before anything is dispatched.

    Args:
        form: Mapping with "date", "start_lat", "start_lon", "end_lat",
            "end_lon" and optional "zoom_level"

    Raises:
        QueryValidationError: With the message to show in the status line
    """
    date = str(form.get("date") or "").strip()
    if not date:
        raise QueryValidationError("Please select a date")

    coords = []
    for key in ("start_lat", "start_lon", "end_lat", "end_lon"):
        try:
            value = float(form.get(key))
        except (TypeError, ValueError):
            raise QueryValidationError("Please enter valid coordinates") from None
        if not math.isfinite(value):
            raise QueryValidationError("Please enter valid coordinates")
        coords.append(value)

    try:
        zoom_level = int(form.get("zoom_level") or 1)
    except (TypeError, ValueError):
        zoom_level = 1

    return QueryParams(date, *coords, zoom_level=zoom_level)


# ═══════════════════════════════════════════════════════════════════════════
# 🎛️ UI CONTROLLER
# ═══════════════════════════════════════════════════════════════════════════


class UIController:
    """Toolbar and sidebar state for the two-viewer page."""

    def __init__(
        self,
        viewer1: SliceView,
        viewer2: SliceView,
        track_map: TrackMapView,
        sync: SyncController,
    ) -> None:
        self.viewers = {"viewer1": viewer1, "viewer2": viewer2}
        self.track_map = track_map
        self.sync = sync

        self.active_viewer = "both"
        self.poi_mode = False
        self.poi_type = PoiType.CULVERT

        self.status = ""
        self.connection_status = DEMO_MODE_TEXT
        self.cursor_info: Dict[str, str] = _empty_cursor_info()
        self.map_cursor = ""
        self.track_info_text: Dict[str, str] = {}
        self.viewer_info: Dict[str, str] = {name: "No data" for name in self.viewers}
        self.loading = False

        for view in self.viewers.values():
            view.position_changed.subscribe(self.update_cursor_info)
        track_map.hovered.subscribe(self._on_map_hover)

    # --- Status line ---

    def set_status(self, message: str) -> None:
        self.status = message
        logger.info(f"Status: {message}")

    def set_connection_status(self, connected: bool) -> None:
        self.connection_status = CONNECTED_TEXT if connected else DEMO_MODE_TEXT

    # --- Viewer selection and navigation ---

    def set_active_viewer(self, name: str) -> None:
        if name not in ACTIVE_VIEWERS:
            raise ValueError(f"Unknown viewer: {name}")
        self.active_viewer = name

    def active_views(self) -> List[SliceView]:
        """Views a toolbar action applies to.

        With sync on, "both" drives viewer1 only; the sync controller
        mirrors the change, so viewer2 is not moved twice.
        """
        if self.active_viewer != "both":
            return [self.viewers[self.active_viewer]]
        if self.sync.enabled:
            return [self.viewers["viewer1"]]
        return list(self.viewers.values())

    def zoom_in(self) -> None:
        for view in self.active_views():
            view.zoom_in()

    def zoom_out(self) -> None:
        for view in self.active_views():
            view.zoom_out()

    def reset_view(self) -> None:
        for view in self.active_views():
            view.reset_viewport()

    def seek_left(self) -> None:
        for view in self.active_views():
            view.seek_left()

    def seek_right(self) -> None:
        for view in self.active_views():
            view.seek_right()

    def zoom_display(self) -> str:
        return f"{self.viewers['viewer1'].zoom_percentage()}%"

    # --- POI mode ---

    def toggle_poi_mode(self) -> bool:
        self.poi_mode = not self.poi_mode
        if self.poi_mode:
            self.set_status(
                f"POI mode: click a viewer to add a {self.poi_type.display_name}"
            )
        else:
            self.set_status("POI mode off")
        return self.poi_mode

    def set_poi_type(self, value: str) -> PoiType:
        self.poi_type = PoiType.from_string(value)
        return self.poi_type

    # --- Sync / map ---

    def toggle_sync(self) -> bool:
        enabled = self.sync.toggle_sync()
        self.set_status(f"Sync {'enabled' if enabled else 'disabled'}")
        return enabled

    def fit_map(self) -> None:
        self.track_map.fit_bounds()

    def toggle_map_markers(self) -> bool:
        return self.track_map.toggle_markers()

    # --- Keyboard ---

    def handle_key(self, key: str, ctrl: bool = False) -> bool:
        """Dispatch a keyboard shortcut; False for keys with no binding."""
        if ctrl:
            if key.lower() == "s":
                self.toggle_sync()
                return True
            return False

        actions = {
            "+": self.zoom_in,
            "=": self.zoom_in,
            "-": self.zoom_out,
            "0": self.reset_view,
            "ArrowLeft": self.seek_left,
            "ArrowRight": self.seek_right,
        }
        action = actions.get(key)
        if action is None:
            return False
        action()
        return True

    def dispatch(self, action: str) -> None:
        """Run a named toolbar action (zoom_in, seek_left, fit_map, ...)."""
        actions = {
            "zoom_in": self.zoom_in,
            "zoom_out": self.zoom_out,
            "reset": self.reset_view,
            "seek_left": self.seek_left,
            "seek_right": self.seek_right,
            "toggle_sync": self.toggle_sync,
            "toggle_poi_mode": self.toggle_poi_mode,
            "fit_map": self.fit_map,
            "toggle_markers": self.toggle_map_markers,
        }
        if action not in actions:
            raise ValueError(f"Unknown action: {action}")
        actions[action]()

    # --- Info panels ---

    def update_cursor_info(self, position: SlicePosition) -> Dict[str, str]:
        geo = position.geo
        intensity = position.intensity
        self.cursor_info = {
            "position": f"X: {position.data_x}, Y: {position.data_y}",
            "intensity": f"{intensity:.1f}" if intensity is not None else "--",
            "lat": f"{geo.lat:.6f}" if geo else "--",
            "lon": f"{geo.lon:.6f}" if geo else "--",
            "depth": f"{geo.depth_m:.2f} m" if geo else "--",
            "mile": (
                f"{geo.mile_marker:.2f}"
                if geo is not None and geo.mile_marker is not None
                else "--"
            ),
        }
        return self.cursor_info

    def update_track_info(self, info: Optional[TrackInfo]) -> None:
        if info is None:
            self.track_info_text = {}
            return
        self.track_info_text = {
            "points": str(info.total_points),
            "distance": (
                f"{info.total_distance_miles:.2f} mi "
                f"({info.total_distance_km:.2f} km)"
            ),
            "start": info.start_time,
            "end": info.end_time,
        }

    def refresh_viewer_info(self) -> None:
        for name, view in self.viewers.items():
            self.viewer_info[name] = view.info_text()

    def _on_map_hover(self, latlon) -> None:
        lat, lon = latlon
        self.map_cursor = f"{lat:.5f}, {lon:.5f}"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "connection_status": self.connection_status,
            "active_viewer": self.active_viewer,
            "poi_mode": self.poi_mode,
            "poi_type": self.poi_type.value,
            "sync_enabled": self.sync.enabled,
            "show_markers": self.track_map.show_markers,
            "cursor_info": dict(self.cursor_info),
            "map_cursor": self.map_cursor,
            "track_info": dict(self.track_info_text),
            "viewer_info": dict(self.viewer_info),
            "zoom": self.zoom_display(),
            "loading": self.loading,
        }


def _empty_cursor_info() -> Dict[str, str]:
    return {
        "position": "--",
        "intensity": "--",
        "lat": "--",
        "lon": "--",
        "depth": "--",
        "mile": "--",
    }
