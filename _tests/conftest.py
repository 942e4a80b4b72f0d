"""
Shared fixtures for gpr_viz tests.

Run with: python -m pytest _tests -v
"""

from typing import Any, Dict, List, Optional

import numpy as np
import pytest

from gpr_viz.models import (
    DataProviderError,
    GeoBounds,
    Poi,
    PoiType,
    SliceDataset,
    TrackPoint,
)
from gpr_viz.viz_config_types import MockDataConfig, VizConfig

# ═══════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def make_track(n: int = 11, miles_per_step: float = 0.5) -> tuple:
    """Straight track from (43.0, -81.0) to (43.01, -80.99)."""
    points = []
    for i in range(n):
        t = i / (n - 1) if n > 1 else 0.0
        miles = i * miles_per_step
        points.append(
            TrackPoint(
                index=i,
                lat=43.0 + 0.01 * t,
                lon=-81.0 + 0.01 * t,
                distance_km=miles / 0.621371,
                distance_miles=miles,
                timestamp=f"2025-06-15T08:{i:02d}:00Z",
            )
        )
    return tuple(points)


def make_dataset(width: int = 100, height: int = 20, track=None) -> SliceDataset:
    grid = np.arange(width * height, dtype=float).reshape(height, width) % 256
    return SliceDataset(
        grid=grid,
        bounds=GeoBounds(43.0, -81.0, 43.01, -80.99, (0.0, 5.0)),
        date="2025-06-15",
        track=track if track is not None else make_track(),
    )


def make_poi(poi_id: str = "poi-101", poi_type: str = "pipe", slice_x: float = 10) -> Poi:
    return Poi(
        id=poi_id,
        type=PoiType.from_string(poi_type),
        label=f"{poi_type} {poi_id}",
        slice_x=slice_x,
        slice_y=5,
        lat=43.001,
        lon=-80.999,
        mile_marker=0.5,
    )


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class FakeProvider:
    """Stand-in for ApiClient that records calls and can fail on demand."""

    def __init__(
        self,
        dataset: Optional[SliceDataset] = None,
        track=None,
        fail_slice: bool = False,
        fail_track: bool = False,
        healthy: bool = True,
    ) -> None:
        self.dataset = dataset
        self.track = track
        self.fail_slice = fail_slice
        self.fail_track = fail_track
        self.healthy = healthy
        self.calls: List[str] = []
        self.created: List[Poi] = []
        self.deleted: List[str] = []

    def fetch_slice(self, **params: Any) -> SliceDataset:
        self.calls.append("slice")
        if self.fail_slice:
            raise DataProviderError("slice unavailable")
        return self.dataset

    def fetch_track(self, **params: Any):
        self.calls.append("track")
        if self.fail_track:
            raise DataProviderError("track unavailable", status_code=503)
        return self.track

    def health_check(self) -> bool:
        return self.healthy

    def create_poi(self, poi: Poi) -> Dict[str, Any]:
        self.created.append(poi)
        return {"status": "ok"}

    def delete_poi(self, poi_id: str) -> Dict[str, Any]:
        self.deleted.append(poi_id)
        return {"status": "ok"}


# ═══════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def track():
    return make_track()


@pytest.fixture
def dataset(track):
    return make_dataset(track=track)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def small_config():
    """Default config with a small synthetic dataset for fast tests."""
    config = VizConfig.defaults()
    return VizConfig(
        api=config.api,
        server=config.server,
        slice=config.slice,
        map=config.map,
        poi_colors=config.poi_colors,
        sync=config.sync,
        mock=MockDataConfig(width=240, height=40, track_points=60),
    )


@pytest.fixture
def valid_form():
    return {
        "date": "2025-06-15",
        "start_lat": "43.0",
        "start_lon": "-81.0",
        "end_lat": "43.01",
        "end_lon": "-80.99",
    }
