#!/usr/bin/env python3
"""
Slice View - One GPR Heatmap Viewer

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Hold the state of one slice viewer (dataset, POIs,
colorscale, viewport), turn pointer events from the page into slice-space
events, and render itself as a Plotly figure.

Events (subscribe via EventHook.subscribe):
- position_changed(SlicePosition): pointer hover, with resolved geo position
- clicked(SliceClick): pointer click, rounded to whole pixels
- viewport_changed(ViewportChange): user-driven pan/zoom/seek/reset

Echo Suppression:
=================
Every viewport change, user-driven or external, goes through
_on_viewport_change(). apply_external_viewport() sets the per-view
_is_syncing flag before applying and clears it afterwards; the handler
checks the flag first and does not emit while it is set. A mirrored change
therefore never propagates back to the view it came from.

In a multi-threaded host the boolean flag would need to become a sequence
or version stamp comparison; here all handlers run on one thread.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import plotly.graph_objects as go

from gpr_viz.coordinate_mapper import slice_to_geo
from gpr_viz.events import EventHook
from gpr_viz.models import (
    GeoPosition,
    GpsTrack,
    Poi,
    SliceClick,
    SliceDataset,
    SlicePosition,
    Viewport,
    ViewportChange,
)
from gpr_viz.plotly_traces import (
    build_slice_heatmap_trace,
    build_slice_layout,
    build_slice_poi_trace,
)
from gpr_viz.viz_config_types import SliceViewConfig

logger = logging.getLogger(__name__)


class SliceView:
    """State and rendering of a single slice heatmap viewer."""

    def __init__(
        self,
        name: str,
        config: Optional[SliceViewConfig] = None,
        poi_colors: Optional[Dict[str, str]] = None,
    ) -> None:
        self.name = name
        self.config = config or SliceViewConfig()
        self.poi_colors = poi_colors or {}

        # Data state
        self.dataset: Optional[SliceDataset] = None
        self.track: GpsTrack = ()
        self.pois: List[Poi] = []
        self.colorscale = self.config.colorscale

        # None = autorange (whole slice visible)
        self.viewport: Optional[Viewport] = None

        # Set while an externally driven viewport change is being applied
        self._is_syncing = False

        # Events
        self.position_changed: EventHook[SlicePosition] = EventHook(
            f"{name}.position_changed"
        )
        self.clicked: EventHook[SliceClick] = EventHook(f"{name}.clicked")
        self.viewport_changed: EventHook[ViewportChange] = EventHook(
            f"{name}.viewport_changed"
        )

    # ═══════════════════════════════════════════════════════════════════════
    # 📂 DATA
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def has_data(self) -> bool:
        return self.dataset is not None

    @property
    def is_syncing(self) -> bool:
        return self._is_syncing

    def load(self, dataset: SliceDataset, track: Optional[GpsTrack] = None) -> None:
        """Show a new dataset; the viewport returns to the full slice."""
        self.dataset = dataset
        self.track = tuple(track) if track is not None else dataset.track
        self.viewport = None
        logger.info(
            f"[{self.name}] Loaded slice {dataset.width}x{dataset.height} "
            f"({len(self.track)} track points)"
        )

    def set_pois(self, pois: Sequence[Poi]) -> None:
        self.pois = list(pois or [])

    def set_colorscale(self, colorscale: str) -> None:
        self.colorscale = colorscale

    def geo_at(self, x: float, y: float) -> Optional[GeoPosition]:
        """Geographic position of a slice pixel, None before the first load."""
        return slice_to_geo(x, y, self.dataset, self.track)

    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ POINTER EVENTS
    # ═══════════════════════════════════════════════════════════════════════

    def handle_hover(
        self, x: float, y: float, intensity: Optional[float] = None
    ) -> Optional[SlicePosition]:
        """Report a hover position; ignored until a dataset is loaded."""
        if self.dataset is None:
            return None
        position = SlicePosition(
            data_x=round(x),
            data_y=round(y),
            intensity=intensity,
            geo=self.geo_at(x, y),
        )
        self.position_changed.emit(position)
        return position

    def handle_click(
        self, x: float, y: float, intensity: Optional[float] = None
    ) -> Optional[SliceClick]:
        if self.dataset is None:
            return None
        data_x, data_y = round(x), round(y)
        click = SliceClick(
            data_x=data_x,
            data_y=data_y,
            intensity=intensity,
            geo=self.geo_at(data_x, data_y),
        )
        self.clicked.emit(click)
        return click

    def handle_relayout(self, event_data: Dict[str, Any]) -> Optional[Viewport]:
        """
        Apply a Plotly relayout event from the page.

        Understands "xaxis.range[0]"/"xaxis.range[1]", "xaxis.range" lists
        (same for yaxis) and "xaxis.autorange" resets. Events without axis
        keys (e.g. dragmode changes) are ignored.

        Returns:
            The new viewport, or None when the event carried no axis change.
        """
        if self.dataset is None or not event_data:
            return None

        if event_data.get("xaxis.autorange") or event_data.get("yaxis.autorange"):
            self._on_viewport_change(None)
            return self.current_range()

        x_range = _axis_range(event_data, "xaxis")
        y_range = _axis_range(event_data, "yaxis")
        if x_range is None and y_range is None:
            return None

        current = self.current_range()
        viewport = Viewport(
            x_range=x_range if x_range is not None else current.x_range,
            y_range=y_range if y_range is not None else current.y_range,
        )
        self._on_viewport_change(viewport)
        return viewport

    # ═══════════════════════════════════════════════════════════════════════
    # 🔍 VIEWPORT
    # ═══════════════════════════════════════════════════════════════════════

    def full_viewport(self) -> Optional[Viewport]:
        """Heatmap extent; depth axis reversed so row 0 is at the top."""
        if self.dataset is None:
            return None
        return Viewport(
            x_range=(-0.5, self.dataset.width - 0.5),
            y_range=(self.dataset.height - 0.5, -0.5),
        )

    def current_range(self) -> Optional[Viewport]:
        if self.dataset is None:
            return None
        return self.viewport if self.viewport is not None else self.full_viewport()

    def apply_external_viewport(self, viewport: Optional[Viewport]) -> None:
        """Mirror a viewport coming from another view without re-emitting it."""
        if self.dataset is None:
            return
        self._is_syncing = True
        try:
            self._on_viewport_change(viewport)
        finally:
            self._is_syncing = False

    def zoom_in(self) -> None:
        self._scale(self.config.zoom_in_factor)

    def zoom_out(self) -> None:
        self._scale(self.config.zoom_out_factor)

    def reset_viewport(self) -> None:
        if self.dataset is None:
            return
        self._on_viewport_change(None)

    def seek_left(self, amount: Optional[float] = None) -> None:
        self._shift(-(amount if amount is not None else self.config.seek_amount))

    def seek_right(self, amount: Optional[float] = None) -> None:
        self._shift(amount if amount is not None else self.config.seek_amount)

    def center_on_x(self, data_x: float) -> None:
        """Centre the visible x-range on data_x, keeping its width."""
        current = self.current_range()
        if current is None:
            return
        half_span = (current.x_range[1] - current.x_range[0]) / 2
        self._on_viewport_change(
            Viewport(
                x_range=(data_x - half_span, data_x + half_span),
                y_range=current.y_range,
            )
        )

    def zoom_percentage(self) -> int:
        """Approximate zoom level: full width / visible width, as a percent."""
        current = self.current_range()
        if current is None or current.x_span == 0:
            return 100
        return round(self.dataset.width / current.x_span * 100)

    def _scale(self, factor: float) -> None:
        current = self.current_range()
        if current is None:
            return
        self._on_viewport_change(
            Viewport(
                x_range=_scale_range(current.x_range, factor),
                y_range=_scale_range(current.y_range, factor),
            )
        )

    def _shift(self, amount: float) -> None:
        current = self.current_range()
        if current is None:
            return
        x0, x1 = current.x_range
        self._on_viewport_change(
            Viewport(x_range=(x0 + amount, x1 + amount), y_range=current.y_range)
        )

    def _on_viewport_change(self, viewport: Optional[Viewport]) -> None:
        """Single entry point for every viewport change."""
        self.viewport = viewport
        if self._is_syncing:
            return
        self.viewport_changed.emit(ViewportChange(viewport=self.current_range()))

    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 RENDERING
    # ═══════════════════════════════════════════════════════════════════════

    def info_text(self) -> str:
        if self.dataset is None:
            return "No data"
        return f"{self.dataset.width}x{self.dataset.height} | Full Track"

    def to_figure(self) -> go.Figure:
        """Heatmap plus POI markers, with the current viewport applied."""
        layout = build_slice_layout(self.config, self.viewport)
        if self.dataset is None:
            return go.Figure(layout=layout)

        traces = [
            build_slice_heatmap_trace(self.dataset.grid, self.config, self.colorscale)
        ]
        poi_trace = build_slice_poi_trace(
            self.pois, self.poi_colors, self.config.poi_marker_size
        )
        if poi_trace is not None:
            traces.append(poi_trace)
        return go.Figure(data=traces, layout=layout)


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _axis_range(event_data: Dict[str, Any], axis: str) -> Optional[tuple]:
    low = event_data.get(f"{axis}.range[0]")
    high = event_data.get(f"{axis}.range[1]")
    if low is not None and high is not None:
        return (float(low), float(high))
    both = event_data.get(f"{axis}.range")
    if both is not None and len(both) == 2:
        return (float(both[0]), float(both[1]))
    return None


def _scale_range(axis_range: tuple, factor: float) -> tuple:
    """Scale a range about its centre, preserving orientation."""
    center = (axis_range[0] + axis_range[1]) / 2
    return (
        center + (axis_range[0] - center) * factor,
        center + (axis_range[1] - center) * factor,
    )
