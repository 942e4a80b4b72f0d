#!/usr/bin/env python3
"""
Synchronization Controller

Keeps the two slice viewers and the track map consistent:

1. Viewport sync: a user pan/zoom in one slice view is mirrored to the
   other. The target applies it through apply_external_viewport(), whose
   echo guard stops it from bouncing back.
2. Position sync: hover/click positions with a resolved track index move
   the map's position indicator, at most once per throttle window. Updates
   inside the window are dropped, not queued.
3. POI propagation: every PoiStore change pushes the full list to all
   three views.
4. Map -> slice navigation via sync_to_track_position().
5. Visible section: the track span covered by a view's x range is
   highlighted on the map; a full-width view clears it.
"""

import logging
import math
import time
from typing import Callable, List, Optional, Tuple, Union

from gpr_viz.coordinate_mapper import fraction_to_track_index, track_index_to_slice_x
from gpr_viz.models import Poi, SliceClick, SlicePosition, Viewport, ViewportChange
from gpr_viz.poi_store import PoiStore
from gpr_viz.slice_view import SliceView
from gpr_viz.track_map_view import TrackMapView
from gpr_viz.viz_config_types import SyncConfig

logger = logging.getLogger(__name__)


class SyncController:
    """Wires two SliceViews, a TrackMapView and a PoiStore together."""

    def __init__(
        self,
        view_a: SliceView,
        view_b: SliceView,
        track_map: TrackMapView,
        poi_store: PoiStore,
        config: Optional[SyncConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.view_a = view_a
        self.view_b = view_b
        self.track_map = track_map
        self.poi_store = poi_store
        self.config = config or SyncConfig()
        self.enabled = self.config.enabled
        self._clock = clock
        self._last_position_update = -math.inf

        self._unsubscribers: List[Callable[[], None]] = [
            view_a.viewport_changed.subscribe(
                lambda change: self._mirror_viewport(change, view_b)
            ),
            view_b.viewport_changed.subscribe(
                lambda change: self._mirror_viewport(change, view_a)
            ),
            poi_store.changed.subscribe(self._propagate_pois),
        ]
        for view in (view_a, view_b):
            self._unsubscribers.append(
                view.viewport_changed.subscribe(
                    lambda change, view=view: self.highlight_visible_section(
                        view, change.viewport
                    )
                )
            )
            self._unsubscribers.append(view.position_changed.subscribe(self.forward_position))
            self._unsubscribers.append(view.clicked.subscribe(self.forward_position))

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # --- Viewport ---

    def toggle_sync(self) -> bool:
        self.enabled = not self.enabled
        logger.info(f"Viewport sync {'enabled' if self.enabled else 'disabled'}")
        return self.enabled

    def _mirror_viewport(self, change: ViewportChange, target: SliceView) -> None:
        if not self.enabled:
            return
        target.apply_external_viewport(change.viewport)

    # --- Position ---

    def forward_position(self, position: Union[SlicePosition, SliceClick]) -> bool:
        """Move the map indicator; False when throttled or unresolved."""
        index = position.track_index
        if index is None:
            return False
        now = self._clock()
        if (now - self._last_position_update) * 1000.0 < self.config.position_throttle_ms:
            return False
        self._last_position_update = now
        return self.track_map.update_position_indicator(index)

    def sync_to_track_position(self, track_index: int) -> Optional[int]:
        """
        Centre both slice views on the column matching track_index.

        Returns:
            The slice x used, or None when the index is out of range or no
            slice is loaded.
        """
        if self.track_map.point_at(track_index) is None:
            return None
        dataset = self.view_a.dataset
        if dataset is None:
            return None

        slice_x = track_index_to_slice_x(
            track_index, len(self.track_map.track), dataset.width
        )
        self.view_a.center_on_x(slice_x)
        if not self.enabled:
            self.view_b.center_on_x(slice_x)
        self.track_map.update_position_indicator(track_index)
        return slice_x

    def highlight_visible_section(
        self, view: SliceView, viewport: Optional[Viewport]
    ) -> Optional[Tuple[int, int]]:
        """Highlight the track points under view's x range on the map."""
        dataset = view.dataset
        track_length = len(self.track_map.track)
        if dataset is None or viewport is None or track_length == 0:
            return None

        x0, x1 = sorted(viewport.x_range)
        if x0 <= -0.5 and x1 >= dataset.width - 0.5:
            self.track_map.clear_highlight()
            return None

        start = fraction_to_track_index(max(x0, 0.0) / dataset.width, track_length)
        end = fraction_to_track_index(min(x1, dataset.width) / dataset.width, track_length)
        self.track_map.highlight_section(start, end)
        return self.track_map.highlight

    # --- POIs ---

    def _propagate_pois(self, pois: Tuple[Poi, ...]) -> None:
        self.view_a.set_pois(pois)
        self.view_b.set_pois(pois)
        self.track_map.set_pois(pois)
