#!/usr/bin/env python3
"""
Track Map View - GPS Track on a Tile Map

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Hold the map state (track, POIs, current position,
mile-marker visibility, highlighted section, camera) and render it as a
Plotly Scattermap figure.

Events:
- position_clicked(NearestTrackPoint): map click that landed near the track
- hovered((lat, lon)): pointer movement over the map

Camera:
fit_bounds() pads the track's lat/lon box and derives a centre and zoom
level from it (Web Mercator tile math); Plotly has no "fit to bounds"
layout property, so the camera is stored here and written into the layout.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import plotly.graph_objects as go

from gpr_viz.coordinate_mapper import find_nearest_track_point, track_point_at
from gpr_viz.events import EventHook
from gpr_viz.models import GpsTrack, NearestTrackPoint, Poi, TrackInfo, TrackPoint
from gpr_viz.plotly_traces import (
    build_endpoint_traces,
    build_highlight_trace,
    build_map_layout,
    build_map_poi_traces,
    build_mile_marker_trace,
    build_position_trace,
    build_track_line_traces,
)
from gpr_viz.viz_config_types import TrackMapConfig

logger = logging.getLogger(__name__)

# Zoom limits of the tile map
MIN_ZOOM = 1.0
MAX_ZOOM = 18.0


class TrackMapView:
    """State and rendering of the GPS track map."""

    def __init__(
        self,
        config: Optional[TrackMapConfig] = None,
        poi_colors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.config = config or TrackMapConfig()
        self.poi_colors = poi_colors or {}

        self.track: GpsTrack = ()
        self.pois: List[Poi] = []
        self.position_index: Optional[int] = None
        self.show_markers = True
        self.highlight: Optional[Tuple[int, int]] = None

        self.center: Tuple[float, float] = (self.config.center_lat, self.config.center_lon)
        self.zoom: float = self.config.zoom

        self.position_clicked: EventHook[NearestTrackPoint] = EventHook(
            "track_map.position_clicked"
        )
        self.hovered: EventHook[Tuple[float, float]] = EventHook("track_map.hovered")

    # ═══════════════════════════════════════════════════════════════════════
    # 📂 DATA
    # ═══════════════════════════════════════════════════════════════════════

    def load_track(self, track: Sequence[TrackPoint]) -> None:
        """Replace the track; clears position and highlight, refits the camera."""
        self.track = tuple(track or ())
        self.position_index = None
        self.highlight = None
        if self.track:
            self.fit_bounds()
        logger.info(f"Track map loaded {len(self.track)} points")

    def set_pois(self, pois: Sequence[Poi]) -> None:
        self.pois = list(pois or [])

    def point_at(self, index: int) -> Optional[TrackPoint]:
        return track_point_at(self.track, index)

    def track_info(self) -> Optional[TrackInfo]:
        return TrackInfo.from_track(self.track)

    def mile_markers(self) -> List[Tuple[int, TrackPoint]]:
        """(mile, point) for the first point at or past each whole mile > 0."""
        markers: List[Tuple[int, TrackPoint]] = []
        last_mile = -1
        for point in self.track:
            mile = math.floor(point.distance_miles)
            if mile > last_mile and mile > 0:
                markers.append((mile, point))
            last_mile = max(last_mile, mile)
        return markers

    # ═══════════════════════════════════════════════════════════════════════
    # 📍 POSITION / HIGHLIGHT
    # ═══════════════════════════════════════════════════════════════════════

    def update_position_indicator(self, index: int) -> bool:
        """Move the indicator; out-of-range indices are ignored."""
        if self.point_at(index) is None:
            return False
        self.position_index = index
        return True

    def current_position(self) -> Optional[TrackPoint]:
        if self.position_index is None:
            return None
        return self.point_at(self.position_index)

    def pan_to_position(self, index: int) -> None:
        point = self.point_at(index)
        if point is not None:
            self.center = (point.lat, point.lon)

    def highlight_section(self, start_index: int, end_index: int) -> None:
        """Highlight track[start:end+1]; an empty or inverted range clears it."""
        if not self.track:
            self.highlight = None
            return
        start = max(0, start_index)
        end = min(len(self.track) - 1, end_index)
        self.highlight = (start, end) if start < end else None

    def clear_highlight(self) -> None:
        self.highlight = None

    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ POINTER EVENTS
    # ═══════════════════════════════════════════════════════════════════════

    def handle_click(self, lat: float, lon: float) -> Optional[NearestTrackPoint]:
        nearest = find_nearest_track_point(
            lat, lon, self.track, self.config.nearest_threshold_deg
        )
        if nearest is None:
            return None
        self.position_clicked.emit(nearest)
        return nearest

    def handle_hover(self, lat: float, lon: float) -> str:
        self.hovered.emit((lat, lon))
        return f"Hover: {lat:.5f}, {lon:.5f}"

    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 CAMERA
    # ═══════════════════════════════════════════════════════════════════════

    def toggle_markers(self) -> bool:
        self.show_markers = not self.show_markers
        return self.show_markers

    def fit_bounds(self) -> Optional[Dict[str, float]]:
        """
        Frame the whole track.

        Returns:
            The padded box {"south", "west", "north", "east"}, or None when
            there is no track.
        """
        if not self.track:
            return None

        pad = self.config.fit_padding_deg
        lats = [p.lat for p in self.track]
        lons = [p.lon for p in self.track]
        box = {
            "south": min(lats) - pad,
            "west": min(lons) - pad,
            "north": max(lats) + pad,
            "east": max(lons) + pad,
        }
        self.center = (
            (box["south"] + box["north"]) / 2,
            (box["west"] + box["east"]) / 2,
        )
        self.zoom = _zoom_for_box(box)
        return box

    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 RENDERING
    # ═══════════════════════════════════════════════════════════════════════

    def to_figure(self) -> go.Figure:
        traces: List[go.Scattermap] = []
        traces.extend(build_track_line_traces(self.track, self.config))

        if self.highlight is not None:
            start, end = self.highlight
            highlight = build_highlight_trace(self.track[start : end + 1], self.config)
            if highlight is not None:
                traces.append(highlight)

        traces.extend(build_endpoint_traces(self.track, self.config))

        if self.show_markers:
            mile_trace = build_mile_marker_trace(self.mile_markers(), self.config)
            if mile_trace is not None:
                traces.append(mile_trace)

        traces.extend(build_map_poi_traces(self.pois, self.poi_colors))

        position = build_position_trace(self.current_position(), self.config)
        if position is not None:
            traces.append(position)

        return go.Figure(
            data=traces, layout=build_map_layout(self.config, self.center, self.zoom)
        )


def _zoom_for_box(box: Dict[str, float]) -> float:
    """Largest zoom level at which the box still fits a ~512px map panel."""
    lon_span = max(box["east"] - box["west"], 1e-9)
    lat_rad = [math.radians(box["south"]), math.radians(box["north"])]
    mercator = [math.log(math.tan(math.pi / 4 + r / 2)) for r in lat_rad]
    lat_span = max((mercator[1] - mercator[0]) * 180 / math.pi, 1e-9)

    # 2 tiles of 256px at zoom 0 cover 360 degrees
    zoom_lon = math.log2(360 * 2 / lon_span)
    zoom_lat = math.log2(360 * 2 / lat_span)
    zoom = min(zoom_lon, zoom_lat) - 1
    return round(max(MIN_ZOOM, min(MAX_ZOOM, zoom)), 2)
