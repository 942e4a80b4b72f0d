#!/usr/bin/env python3
"""
GPR Track Viewer - Composition Root

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Build every component, wire them through EventHook
subscriptions, and expose the user-level operations the server routes call.

Components owned:
- viewer1, viewer2: SliceView
- track_map: TrackMapView
- poi_store: PoiStore (+ PoiIdGenerator for user POIs)
- sync: SyncController
- controls: UIController
- provider: ApiClient

Loading:
- load_sample_data(): synthetic dataset, no network
- load_data(form): validated query -> slice fetch -> track fetch. Any
  DataProviderError falls back to sample data. Split into begin_load(),
  fetch_query() and finish_load() so a caller can run the fetch outside
  its lock. Each load takes a request sequence number; a load that is no
  longer the latest when its responses arrive is discarded without
  touching state.

Threading: GprApp is not thread-safe. The Flask server holds one lock
around every call except fetch_query().

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from gpr_viz.controls import UIController, validate_query
from gpr_viz.coordinate_mapper import (
    fraction_to_track_index,
    slice_to_geo,
    track_point_at,
)
from gpr_viz.data_provider import ApiClient
from gpr_viz.exporters import export_pois_to_csv, export_track_to_csv
from gpr_viz.mock_data import load_mock_dataset
from gpr_viz.models import (
    DataProviderError,
    GpsTrack,
    NearestTrackPoint,
    Poi,
    QueryParams,
    SliceClick,
    SliceDataset,
    TrackInfo,
    check_unique_poi_ids,
)
from gpr_viz.poi_store import PoiIdGenerator, PoiStore
from gpr_viz.slice_view import SliceView
from gpr_viz.sync_controller import SyncController
from gpr_viz.track_map_view import TrackMapView
from gpr_viz.viz_config_types import VIZ_CONFIG, VizConfig

logger = logging.getLogger(__name__)

READY_STATUS = 'Ready - Click "Load Sample Data" to test'
FALLBACK_STATUS = "Backend unavailable - loading sample data"
LOADING_STATUS = "Loading GPR data..."


class GprApp:
    """Two synchronized slice viewers, a track map and a shared POI list."""

    def __init__(
        self,
        config: Optional[VizConfig] = None,
        provider: Optional[ApiClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or VIZ_CONFIG
        self.provider = provider or ApiClient(self.config.api)

        self.viewer1 = SliceView("viewer1", self.config.slice, self.config.poi_colors)
        self.viewer2 = SliceView("viewer2", self.config.slice, self.config.poi_colors)
        self.track_map = TrackMapView(self.config.map, self.config.poi_colors)
        self.poi_store = PoiStore()
        self.id_generator = PoiIdGenerator()

        self.sync = SyncController(
            self.viewer1,
            self.viewer2,
            self.track_map,
            self.poi_store,
            self.config.sync,
            clock=clock,
        )
        self.controls = UIController(
            self.viewer1, self.viewer2, self.track_map, self.sync
        )

        self.dataset: Optional[SliceDataset] = None
        self.track: GpsTrack = ()
        self.connected = False
        self._request_seq = 0

        self.viewer1.clicked.subscribe(lambda click: self.handle_viewer_click(1, click))
        self.viewer2.clicked.subscribe(lambda click: self.handle_viewer_click(2, click))
        self.track_map.position_clicked.subscribe(self._on_map_position_clicked)

        self.controls.set_status(READY_STATUS)

    def viewer(self, number: int) -> SliceView:
        if number == 1:
            return self.viewer1
        if number == 2:
            return self.viewer2
        raise ValueError(f"Unknown viewer number: {number}")

    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 CONNECTION
    # ═══════════════════════════════════════════════════════════════════════

    def check_connection(self) -> bool:
        self.connected = self.provider.health_check()
        self.controls.set_connection_status(self.connected)
        logger.info(f"Backend {'connected' if self.connected else 'unavailable (demo mode)'}")
        return self.connected

    # ═══════════════════════════════════════════════════════════════════════
    # 📂 LOADING
    # ═══════════════════════════════════════════════════════════════════════

    def load_sample_data(self) -> SliceDataset:
        """Load the synthetic dataset with its bundled track and POIs."""
        dataset = load_mock_dataset(self.config.mock)
        self._apply_dataset(dataset, dataset.track, dataset.pois)

        miles = dataset.track[-1].distance_miles if dataset.track else 0.0
        self.controls.set_status(
            f"Loaded: {dataset.date} | {miles:.2f} miles | "
            f"{dataset.width}x{dataset.height}"
        )
        return dataset

    def load_data(self, form: Mapping[str, Any]) -> bool:
        """
        Load slice + track for the queried date and corners.

        Runs begin_load(), fetch_query() and finish_load() in sequence. The
        server calls the three steps separately so the network fetch runs
        without holding its lock.

        Raises:
            QueryValidationError: Invalid form; nothing dispatched

        Returns:
            True when this request's data (or the fallback) was applied,
            False when a newer request superseded it.
        """
        seq, params = self.begin_load(form)
        try:
            result = self.fetch_query(params)
        except DataProviderError as e:
            return self.finish_load(seq, params, error=e)
        return self.finish_load(seq, params, result)

    def begin_load(self, form: Mapping[str, Any]) -> Tuple[int, QueryParams]:
        """Validate the form and take the next request sequence number."""
        params = validate_query(form)
        self._request_seq += 1
        self.controls.loading = True
        self.controls.set_status(LOADING_STATUS)
        return self._request_seq, params

    def fetch_query(self, params: QueryParams) -> Tuple[SliceDataset, GpsTrack]:
        """
        Fetch slice then track. Reads only the provider; safe to run
        while other calls use the app.

        Raises:
            DataProviderError: Either fetch failed
        """
        dataset = self.provider.fetch_slice(**params.slice_params())
        track = self.provider.fetch_track(**params.track_params())
        return dataset, track

    def finish_load(
        self,
        seq: int,
        params: QueryParams,
        result: Optional[Tuple[SliceDataset, GpsTrack]] = None,
        error: Optional[DataProviderError] = None,
    ) -> bool:
        """Apply a fetch result, or fall back to sample data on error.

        A result whose sequence number is no longer the latest is dropped.
        """
        if self._is_stale(seq):
            return False

        self.controls.loading = False
        if error is not None or result is None:
            logger.warning(f"Backend load failed for {params.date}: {error}")
            self.load_sample_data()
            self.controls.set_status(FALLBACK_STATUS)
            return True

        dataset, track = result
        self._apply_dataset(dataset, track or dataset.track, dataset.pois or None)
        self.controls.set_status(f"Loaded data for {params.date}")
        return True

    def _is_stale(self, seq: int) -> bool:
        if seq != self._request_seq:
            logger.info(
                f"Discarding response for request #{seq} "
                f"(latest is #{self._request_seq})"
            )
            return True
        return False

    def _apply_dataset(
        self,
        dataset: SliceDataset,
        track: GpsTrack,
        pois: Optional[Sequence[Poi]] = None,
    ) -> None:
        if pois is not None:
            pois = tuple(pois)
            check_unique_poi_ids(pois)

        self.dataset = dataset
        self.track = tuple(track)
        self.viewer1.load(dataset, self.track)
        self.viewer2.load(dataset, self.track)
        self.track_map.load_track(self.track)
        if pois is not None:
            self.poi_store.replace(pois)

        self.controls.update_track_info(self.track_info())
        self.controls.refresh_viewer_info()

    def track_info(self) -> Optional[TrackInfo]:
        return TrackInfo.from_track(self.track)

    # ═══════════════════════════════════════════════════════════════════════
    # 📍 POIs
    # ═══════════════════════════════════════════════════════════════════════

    def handle_viewer_click(self, viewer_no: int, click: SliceClick) -> Optional[Poi]:
        """Create a POI at the click when POI mode is on and data is loaded."""
        if not self.controls.poi_mode or self.dataset is None:
            return None

        geo = click.geo or slice_to_geo(click.data_x, click.data_y, self.dataset, self.track)
        poi_type = self.controls.poi_type
        poi_id, number = self.id_generator.next_id()
        poi = Poi(
            id=poi_id,
            type=poi_type,
            label=f"{poi_type.display_name} #{number}",
            slice_x=click.data_x,
            slice_y=click.data_y,
            lat=geo.lat,
            lon=geo.lon,
            mile_marker=geo.mile_marker,
            notes=f"Added from viewer {viewer_no} at {datetime.now():%H:%M:%S}",
        )
        self.poi_store.add(poi)
        self._mirror_create(poi)
        self.controls.set_status(
            f"Added {poi.label} at position ({click.data_x}, {click.data_y})"
        )
        return poi

    def delete_poi(self, index: int) -> Optional[Poi]:
        deleted = self.poi_store.delete(index)
        if deleted is None:
            return None
        self._mirror_delete(deleted)
        self.controls.set_status(f"Deleted {deleted.label}")
        return deleted

    def navigate_to_poi(self, index: int) -> Optional[Poi]:
        """Centre both viewers on the POI and move the map indicator."""
        poi = self.poi_store.get(index)
        if poi is None or self.dataset is None:
            return None

        self.viewer1.center_on_x(poi.slice_x)
        if not self.sync.enabled:
            self.viewer2.center_on_x(poi.slice_x)

        if self.track:
            index = fraction_to_track_index(poi.slice_x / self.dataset.width, len(self.track))
            self.track_map.update_position_indicator(index)
            self.track_map.pan_to_position(index)
        self.controls.set_status(f"Navigated to {poi.label}")
        return poi

    def pois_table(self) -> List[Dict[str, Any]]:
        return [
            {**poi.as_dict(), "index": i, "color": self.config.poi_color(poi.type.value)}
            for i, poi in enumerate(self.poi_store)
        ]

    def export_pois_csv(self) -> str:
        return export_pois_to_csv(self.poi_store.as_list())

    def export_track_csv(self) -> str:
        return export_track_to_csv(self.track)

    def _mirror_create(self, poi: Poi) -> None:
        if not (self.config.api.mirror_pois and self.connected):
            return
        try:
            self.provider.create_poi(poi)
        except DataProviderError as e:
            logger.warning(f"Could not save POI {poi.id} to backend: {e}")

    def _mirror_delete(self, poi: Poi) -> None:
        if not (self.config.api.mirror_pois and self.connected):
            return
        try:
            self.provider.delete_poi(poi.id)
        except DataProviderError as e:
            logger.warning(f"Could not delete POI {poi.id} on backend: {e}")

    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ MAP NAVIGATION
    # ═══════════════════════════════════════════════════════════════════════

    def sync_to_track_position(self, track_index: int) -> Optional[int]:
        slice_x = self.sync.sync_to_track_position(track_index)
        if slice_x is None:
            return None
        point = track_point_at(self.track, track_index)
        self.controls.set_status(f"Position: Mile {point.distance_miles:.2f}")
        return slice_x

    def _on_map_position_clicked(self, nearest: NearestTrackPoint) -> None:
        self.sync_to_track_position(nearest.index)

    def set_colorscale(self, colorscale: str) -> None:
        self.viewer1.set_colorscale(colorscale)
        self.viewer2.set_colorscale(colorscale)

    # ═══════════════════════════════════════════════════════════════════════
    # 📤 PAGE STATE
    # ═══════════════════════════════════════════════════════════════════════

    def figures(self) -> Dict[str, Any]:
        return {
            "viewer1": self.viewer1.to_figure(),
            "viewer2": self.viewer2.to_figure(),
            "map": self.track_map.to_figure(),
        }

    def snapshot(self, include_figures: bool = False) -> Dict[str, Any]:
        """JSON-ready page state; figures are go.Figure objects."""
        state: Dict[str, Any] = {
            **self.controls.as_dict(),
            "has_data": self.dataset is not None,
            "date": self.dataset.date if self.dataset is not None else None,
            "connected": self.connected,
            "pois": self.pois_table(),
            "position_index": self.track_map.position_index,
        }
        if include_figures:
            state["figures"] = self.figures()
        return state
