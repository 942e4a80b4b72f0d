#!/usr/bin/env python3
"""
Plotly Trace Builder Functions

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Build Plotly trace and layout objects for the slice
heatmaps and the GPS track map. Each function creates a single trace, a
list of traces, or a layout; no function holds state.

Key Patterns:
- Slice traces are go.Heatmap / go.Scatter in slice-pixel space
- Map traces are go.Scattermap in lat/lon (MapLibre tiles)
- Empty inputs return None (callers skip None traces)
- Styling comes from the typed config objects, never module globals

KNOWN LIMITATIONS:
==================
go.Scattermap markers cannot carry a separate outline colour, so the white
ring the slice POI markers have is drawn on the map as a slightly larger
white marker underneath (see build_map_poi_traces).

Dependencies:
- plotly.graph_objects
- numpy (heatmap z values)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import plotly.graph_objects as go

from gpr_viz.models import Poi, TrackPoint, Viewport
from gpr_viz.viz_config_types import SliceViewConfig, TrackMapConfig

logger = logging.getLogger(__name__)


# ===========================================================================
# SLICE HEATMAP
# ===========================================================================


def build_slice_heatmap_trace(
    grid: np.ndarray,
    config: SliceViewConfig,
    colorscale: Optional[str] = None,
) -> go.Heatmap:
    """
    Build the intensity heatmap for one slice.

    Args:
        grid: (height, width) intensity array
        config: Slice view styling
        colorscale: Override of config.colorscale (user selection)

    Returns:
        go.Heatmap with x = distance sample, y = depth sample
    """
    return go.Heatmap(
        z=grid,
        colorscale=colorscale or config.colorscale,
        reversescale=config.reversescale,
        zsmooth=config.zsmooth,
        hovertemplate="X: %{x}<br>Depth: %{y}<br>Intensity: %{z}<extra></extra>",
        colorbar=dict(
            title=dict(text="Intensity", font=dict(color=config.axis_color, size=10)),
            tickfont=dict(color=config.axis_color, size=9),
            thickness=15,
            len=0.9,
        ),
        name="GPR",
    )


def build_slice_poi_trace(
    pois: Sequence[Poi],
    poi_colors: Dict[str, str],
    marker_size: int = 12,
) -> Optional[go.Scatter]:
    """
    Build diamond markers for POIs in slice-pixel space.

    Returns:
        go.Scatter, or None when there are no POIs
    """
    if not pois:
        return None

    default_color = poi_colors.get("other", "#DFE6E9")
    return go.Scatter(
        x=[p.slice_x for p in pois],
        y=[p.slice_y for p in pois],
        mode="markers+text",
        marker=dict(
            size=marker_size,
            color=[poi_colors.get(p.type.value, default_color) for p in pois],
            symbol="diamond",
            line=dict(color="white", width=2),
        ),
        text=[p.label for p in pois],
        customdata=[p.id for p in pois],
        textposition="top center",
        textfont=dict(color="#fff", size=10),
        hovertemplate="%{text}<extra></extra>",
        name="POIs",
        showlegend=False,
    )


def build_slice_layout(
    config: SliceViewConfig,
    viewport: Optional[Viewport] = None,
) -> go.Layout:
    """
    Build the dark slice layout with a reversed (downward) depth axis.

    Args:
        config: Slice view styling
        viewport: Explicit axis ranges; None means autorange
    """
    axis_title_font = dict(color=config.axis_color, size=11)
    xaxis: Dict[str, Any] = dict(
        title=dict(text="Distance (samples)", font=axis_title_font),
        color=config.axis_color,
        gridcolor=config.grid_color,
        zerolinecolor=config.grid_color,
        tickfont=dict(size=10),
    )
    yaxis: Dict[str, Any] = dict(
        title=dict(text="Depth (samples)", font=axis_title_font),
        color=config.axis_color,
        gridcolor=config.grid_color,
        zerolinecolor=config.grid_color,
        tickfont=dict(size=10),
    )

    if viewport is None:
        xaxis["autorange"] = True
        yaxis["autorange"] = "reversed"
    else:
        xaxis["range"] = list(viewport.x_range)
        yaxis["range"] = list(viewport.y_range)

    return go.Layout(
        paper_bgcolor=config.paper_bgcolor,
        plot_bgcolor=config.plot_bgcolor,
        margin=dict(l=60, r=20, t=10, b=40),
        xaxis=xaxis,
        yaxis=yaxis,
        dragmode="zoom",
        hovermode="closest",
        # Keep zoom state across re-renders triggered by POI changes
        uirevision="slice",
    )


# ===========================================================================
# TRACK MAP
# ===========================================================================


def build_track_line_traces(
    track: Sequence[TrackPoint],
    config: TrackMapConfig,
) -> List[go.Scattermap]:
    """
    Build the track polyline plus a wider translucent glow line behind it.

    Returns:
        [glow, line], or [] for an empty track
    """
    if not track:
        return []

    lats = [p.lat for p in track]
    lons = [p.lon for p in track]
    hover = [
        f"Mile {p.distance_miles:.2f}<br>{p.lat:.5f}, {p.lon:.5f}" for p in track
    ]

    glow = go.Scattermap(
        lat=lats,
        lon=lons,
        mode="lines",
        line=dict(color=config.track_color, width=config.track_width * 2),
        opacity=0.3,
        hoverinfo="skip",
        name="Track glow",
        showlegend=False,
    )
    line = go.Scattermap(
        lat=lats,
        lon=lons,
        mode="lines",
        line=dict(color=config.track_color, width=config.track_width),
        opacity=0.8,
        text=hover,
        customdata=[p.index for p in track],
        hovertemplate="%{text}<extra></extra>",
        name="GPS Track",
        showlegend=False,
    )
    return [glow, line]


def build_endpoint_traces(
    track: Sequence[TrackPoint],
    config: TrackMapConfig,
) -> List[go.Scattermap]:
    """Start (green) and end (red) markers with time and mileage popups."""
    if not track:
        return []

    start, end = track[0], track[-1]
    return [
        _circle_marker(
            start.lat,
            start.lon,
            config.start_color,
            f"<b>Start</b><br>Mile: 0.00<br>Time: {start.timestamp}",
            name="Start",
        ),
        _circle_marker(
            end.lat,
            end.lon,
            config.end_color,
            f"<b>End</b><br>Mile: {end.distance_miles:.2f}<br>Time: {end.timestamp}",
            name="End",
        ),
    ]


def build_mile_marker_trace(
    markers: Sequence[Tuple[int, TrackPoint]],
    config: TrackMapConfig,
) -> Optional[go.Scattermap]:
    """
    Build orange markers at each whole-mile crossing.

    Args:
        markers: (mile_number, track_point) pairs
    """
    if not markers:
        return None

    return go.Scattermap(
        lat=[p.lat for _, p in markers],
        lon=[p.lon for _, p in markers],
        mode="markers",
        marker=dict(size=10, color=config.mile_marker_color, opacity=0.8),
        text=[
            f"<b>Mile {mile}</b><br>Lat: {p.lat:.5f}<br>Lon: {p.lon:.5f}"
            for mile, p in markers
        ],
        hovertemplate="%{text}<extra></extra>",
        name="Mile markers",
        showlegend=False,
    )


def build_position_trace(
    point: Optional[TrackPoint],
    config: TrackMapConfig,
) -> Optional[go.Scattermap]:
    """Current-position indicator, or None when no position is set."""
    if point is None:
        return None

    return _circle_marker(
        point.lat,
        point.lon,
        config.position_color,
        (
            f"<b>Current Position</b><br>Mile: {point.distance_miles:.2f}"
            f"<br>Lat: {point.lat:.5f}<br>Lon: {point.lon:.5f}"
        ),
        name="Current Position",
        size=20,
    )


def build_highlight_trace(
    section: Sequence[TrackPoint],
    config: TrackMapConfig,
) -> Optional[go.Scattermap]:
    """Highlighted sub-section of the track."""
    if len(section) < 2:
        return None

    return go.Scattermap(
        lat=[p.lat for p in section],
        lon=[p.lon for p in section],
        mode="lines",
        line=dict(color=config.highlight_color, width=6),
        opacity=0.8,
        hoverinfo="skip",
        name="Highlight",
        showlegend=False,
    )


def build_map_poi_traces(
    pois: Sequence[Poi],
    poi_colors: Dict[str, str],
) -> List[go.Scattermap]:
    """POI markers in geographic space (white ring + coloured fill)."""
    if not pois:
        return []

    default_color = poi_colors.get("other", "#DFE6E9")
    lats = [p.lat for p in pois]
    lons = [p.lon for p in pois]
    popups = [
        (
            f"<b>{p.label}</b><br>Type: {p.type.value}<br>"
            f"Mile: {_format_mile(p.mile_marker)}<br>{p.notes}"
        )
        for p in pois
    ]

    ring = go.Scattermap(
        lat=lats,
        lon=lons,
        mode="markers",
        marker=dict(size=20, color="#ffffff"),
        hoverinfo="skip",
        name="POI outline",
        showlegend=False,
    )
    fill = go.Scattermap(
        lat=lats,
        lon=lons,
        mode="markers",
        marker=dict(
            size=16,
            color=[poi_colors.get(p.type.value, default_color) for p in pois],
            opacity=0.9,
        ),
        text=popups,
        customdata=[p.id for p in pois],
        hovertemplate="%{text}<extra></extra>",
        name="POIs",
        showlegend=False,
    )
    return [ring, fill]


def build_map_layout(
    config: TrackMapConfig,
    center: Optional[Tuple[float, float]] = None,
    zoom: Optional[float] = None,
) -> go.Layout:
    """
    Build the map layout.

    Args:
        config: Track map styling
        center: (lat, lon) centre; defaults to the configured centre
        zoom: Zoom level; defaults to the configured zoom
    """
    lat, lon = center if center is not None else (config.center_lat, config.center_lon)
    map_settings: Dict[str, Any] = dict(
        style=config.style,
        center=dict(lat=lat, lon=lon),
        zoom=zoom if zoom is not None else config.zoom,
    )

    return go.Layout(
        map=map_settings,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor="#0a0a0a",
        showlegend=False,
        hovermode="closest",
    )


# ===========================================================================
# HELPERS
# ===========================================================================


def _circle_marker(
    lat: float,
    lon: float,
    color: str,
    popup: str,
    name: str,
    size: int = 16,
) -> go.Scattermap:
    return go.Scattermap(
        lat=[lat],
        lon=[lon],
        mode="markers",
        marker=dict(size=size, color=color, opacity=0.9),
        text=[popup],
        hovertemplate="%{text}<extra></extra>",
        name=name,
        showlegend=False,
    )


def _format_mile(mile: Optional[float]) -> str:
    return f"{mile:.2f}" if mile is not None else "--"
