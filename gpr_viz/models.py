"""
Typed data models for GPR slice / GPS track visualization.

Architectural Overview:
=======================
Immutable dataclasses for everything that crosses a component boundary:
slice datasets, GPS tracks, points of interest and viewports. Each model
provides from_dict() for the backend wire format (snake_case JSON) and
as_dict() for the JSON sent to the browser, so remote and synthetic data
have exactly the same shape.

Key Interactions:
-----------------
- Input: data_provider.ApiClient and mock_data build models via from_dict()
- Core: coordinate_mapper, poi_store, views consume the models
- Output: as_dict() feeds Flask jsonify() and the Plotly hover text

Data Flow:
----------
1. Backend JSON / synthetic dict -> SliceDataset.from_dict()
2. SliceDataset.track (tuple of TrackPoint) is shared by both slice views
   and the track map
3. POIs live in PoiStore and are pushed to every view on mutation

MODIFICATION POINT: Add new POI categories to PoiType
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np


# ═══════════════════════════════════════════════════════════════════════════
# ⚠️ EXCEPTIONS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class GprVizError(Exception):
    """Base class for all errors raised by the gpr_viz package."""


class DataProviderError(GprVizError):
    """Backend unreachable, non-2xx response, or undecodable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QueryValidationError(GprVizError, ValueError):
    """User query rejected before any request was issued.

    The message is user-facing and shown verbatim in the status bar.
    """


class DuplicatePoiError(GprVizError, ValueError):
    """Two POIs with the same id in the store or in one dataset."""


class DatasetShapeError(GprVizError, ValueError):
    """Intensity grid is empty or not rectangular."""


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class PoiType(Enum):
    """Category of a point of interest.

    MODIFICATION POINT: Add new categories here and a colour in viz_config.py
    """

    CULVERT = "culvert"
    PIPE = "pipe"
    VOID = "void"
    ANOMALY = "anomaly"
    OTHER = "other"

    @classmethod
    def from_string(cls, s: Optional[str]) -> "PoiType":
        """Convert string to PoiType, with fallback to OTHER.

        Args:
            s: String like "culvert", "pipe", "void"

        Returns:
            Matching PoiType member, or OTHER if not found
        """
        for member in cls:
            if member.value == s:
                return member
        return cls.OTHER

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


POI_TYPES: Tuple[str, ...] = tuple(member.value for member in PoiType)


# ═══════════════════════════════════════════════════════════════════════════
# 🛰️ GPS TRACK SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TrackPoint:
    """One GPS sample along the survey path.

    distance_km / distance_miles are cumulative from the first sample.
    """

    index: int
    lat: float
    lon: float
    distance_km: float
    distance_miles: float
    timestamp: str = ""
    elevation_m: Optional[float] = None
    speed_kmh: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any], index: Optional[int] = None) -> "TrackPoint":
        """Create TrackPoint from backend JSON.

        Args:
            d: Point dict (snake_case keys)
            index: Position in the track; overrides d["index"] when given
        """
        return cls(
            index=int(index if index is not None else d.get("index", 0)),
            lat=float(d["lat"]),
            lon=float(d["lon"]),
            distance_km=float(d.get("distance_km", 0.0)),
            distance_miles=float(d.get("distance_miles", 0.0)),
            timestamp=str(d.get("timestamp", "")),
            elevation_m=_optional_float(d.get("elevation", d.get("elevation_m"))),
            speed_kmh=_optional_float(d.get("speed_kmh")),
        )

    def as_dict(self) -> Dict[str, Any]:
        """Convert to dict using the backend key names."""
        return {
            "index": self.index,
            "lat": self.lat,
            "lon": self.lon,
            "distance_km": self.distance_km,
            "distance_miles": self.distance_miles,
            "timestamp": self.timestamp,
            "elevation": self.elevation_m,
            "speed_kmh": self.speed_kmh,
        }


GpsTrack = Tuple[TrackPoint, ...]


def track_from_list(points: Optional[Sequence[Dict[str, Any]]]) -> GpsTrack:
    """Build an immutable GPS track, re-indexing points by position."""
    if not points:
        return ()
    return tuple(TrackPoint.from_dict(p, index=i) for i, p in enumerate(points))


@dataclass(frozen=True)
class TrackInfo:
    """Summary of a loaded GPS track for the sidebar."""

    total_points: int
    total_distance_km: float
    total_distance_miles: float
    start_time: str
    end_time: str

    @classmethod
    def from_track(cls, track: GpsTrack) -> Optional["TrackInfo"]:
        if not track:
            return None
        last = track[-1]
        return cls(
            total_points=len(track),
            total_distance_km=last.distance_km,
            total_distance_miles=last.distance_miles,
            start_time=track[0].timestamp,
            end_time=last.timestamp,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_points": self.total_points,
            "total_distance_km": self.total_distance_km,
            "total_distance_miles": self.total_distance_miles,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ SLICE DATASET SECTION
# ═══════════════════════════════════════════════════════════════════════════

DEFAULT_DEPTH_RANGE_M: Tuple[float, float] = (0.0, 5.0)


@dataclass(frozen=True)
class GeoBounds:
    """Affine mapping from grid indices to geography.

    Attributes:
        start_lat, start_lon: Position of slice column 0
        end_lat, end_lon: Position of slice column `width`
        depth_range_m: (min, max) depth in meters for rows 0..height
    """

    start_lat: float
    start_lon: float
    end_lat: float
    end_lon: float
    depth_range_m: Tuple[float, float] = DEFAULT_DEPTH_RANGE_M

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeoBounds":
        """Create GeoBounds from a slice or bounds response.

        depth_range_m is read from the top level or from d["metadata"].
        """
        metadata = d.get("metadata") or {}
        depth = d.get("depth_range_m", metadata.get("depth_range_m"))
        if not depth:
            depth = DEFAULT_DEPTH_RANGE_M
        return cls(
            start_lat=float(d["start_lat"]),
            start_lon=float(d["start_lon"]),
            end_lat=float(d["end_lat"]),
            end_lon=float(d["end_lon"]),
            depth_range_m=(float(depth[0]), float(depth[1])),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "start_lat": self.start_lat,
            "start_lon": self.start_lon,
            "end_lat": self.end_lat,
            "end_lon": self.end_lon,
            "depth_range_m": list(self.depth_range_m),
        }


@dataclass(frozen=True, eq=False)
class SliceDataset:
    """Intensity grid paired 1:1 with its geographic bounds.

    The grid is stored as a read-only numpy array of shape (height, width).
    Replaced wholesale on every load; never mutated.
    """

    grid: np.ndarray
    bounds: GeoBounds
    date: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    track: GpsTrack = ()
    pois: Tuple["Poi", ...] = ()

    def __post_init__(self) -> None:
        grid = np.array(self.grid, dtype=float)
        if grid.ndim != 2 or grid.shape[0] == 0 or grid.shape[1] == 0:
            raise DatasetShapeError(
                f"Intensity grid must be a non-empty 2D array, got shape {grid.shape}"
            )
        grid.setflags(write=False)
        object.__setattr__(self, "grid", grid)
        check_unique_poi_ids(self.pois)

    @property
    def width(self) -> int:
        return int(self.grid.shape[1])

    @property
    def height(self) -> int:
        return int(self.grid.shape[0])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SliceDataset":
        """Create SliceDataset from a slice response.

        Accepts both "data" (backend) and "gpr_data" (synthetic) for the grid
        and "gps_track" or "points" for an optional bundled track.

        Raises:
            DatasetShapeError: If rows have differing lengths
            DuplicatePoiError: If two bundled POIs share an id
        """
        rows = d.get("data")
        if rows is None:
            rows = d.get("gpr_data")
        if rows is None or len(rows) == 0:
            raise DatasetShapeError("Slice response contains no intensity data")
        if not isinstance(rows, np.ndarray):
            lengths = {len(row) for row in rows}
            if len(lengths) != 1:
                raise DatasetShapeError(
                    f"Intensity grid is not rectangular (row lengths {sorted(lengths)})"
                )

        track_points = d.get("gps_track")
        if track_points is None:
            track_points = d.get("points")

        return cls(
            grid=np.asarray(rows, dtype=float),
            bounds=GeoBounds.from_dict(d),
            date=str(d.get("date", "")),
            metadata=dict(d.get("metadata") or {}),
            track=track_from_list(track_points),
            pois=tuple(Poi.from_dict(p) for p in d.get("pois", []) or []),
        )

    def as_dict(self, include_grid: bool = True) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "date": self.date,
            "width": self.width,
            "height": self.height,
            **self.bounds.as_dict(),
            "metadata": dict(self.metadata),
        }
        if include_grid:
            d["data"] = self.grid.tolist()
        return d


# ═══════════════════════════════════════════════════════════════════════════
# 📍 POINT OF INTEREST SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Poi:
    """Point of interest tied to both slice-pixel and geographic coordinates."""

    id: str
    type: PoiType
    label: str
    slice_x: float
    slice_y: float
    lat: float = 0.0
    lon: float = 0.0
    mile_marker: Optional[float] = None
    notes: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Poi":
        return cls(
            id=str(d["id"]),
            type=PoiType.from_string(d.get("type")),
            label=str(d.get("label", "")),
            slice_x=float(d.get("slice_x", 0)),
            slice_y=float(d.get("slice_y", 0)),
            lat=float(d.get("lat") or 0.0),
            lon=float(d.get("lon") or 0.0),
            mile_marker=_optional_float(d.get("mile_marker")),
            notes=str(d.get("notes") or ""),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "slice_x": self.slice_x,
            "slice_y": self.slice_y,
            "lat": self.lat,
            "lon": self.lon,
            "mile_marker": self.mile_marker,
            "notes": self.notes,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 COORDINATE RESULT SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeoPosition:
    """Result of mapping a slice pixel into geographic / track space.

    mile_marker and track_index are None when no GPS track is loaded.
    """

    lat: float
    lon: float
    depth_m: float
    mile_marker: Optional[float] = None
    track_index: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "depth_m": self.depth_m,
            "mile_marker": self.mile_marker,
            "track_index": self.track_index,
        }


@dataclass(frozen=True)
class NearestTrackPoint:
    """Track point found by a map click, with its degree-space distance."""

    point: TrackPoint
    distance_deg: float

    @property
    def index(self) -> int:
        return self.point.index


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ VIEW EVENT PAYLOADS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Viewport:
    """Visible sub-range of a rendered slice.

    y_range follows Plotly's reversed depth axis, so y_range[0] may be the
    larger value.
    """

    x_range: Tuple[float, float]
    y_range: Tuple[float, float]

    @property
    def x_span(self) -> float:
        return abs(self.x_range[1] - self.x_range[0])

    def as_dict(self) -> Dict[str, Any]:
        return {"x_range": list(self.x_range), "y_range": list(self.y_range)}


@dataclass(frozen=True)
class SlicePosition:
    """Hover position reported by a slice view."""

    data_x: int
    data_y: int
    intensity: Optional[float] = None
    geo: Optional[GeoPosition] = None

    @property
    def track_index(self) -> Optional[int]:
        return self.geo.track_index if self.geo is not None else None

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "data_x": self.data_x,
            "data_y": self.data_y,
            "intensity": self.intensity,
        }
        if self.geo is not None:
            d.update(self.geo.as_dict())
        return d


@dataclass(frozen=True)
class SliceClick:
    """Click position reported by a slice view, in whole pixels."""

    data_x: int
    data_y: int
    intensity: Optional[float] = None
    geo: Optional[GeoPosition] = None

    @property
    def track_index(self) -> Optional[int]:
        return self.geo.track_index if self.geo is not None else None


@dataclass(frozen=True)
class ViewportChange:
    """Viewport change emitted by a slice view after user interaction."""

    viewport: Viewport
    source: str = "user"


# ═══════════════════════════════════════════════════════════════════════════
# 🔎 QUERY SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class QueryParams:
    """Validated slice/track query."""

    date: str
    start_lat: float
    start_lon: float
    end_lat: float
    end_lon: float
    zoom_level: int = 1

    def slice_params(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "start_lat": self.start_lat,
            "start_lon": self.start_lon,
            "end_lat": self.end_lat,
            "end_lon": self.end_lon,
            "zoom_level": self.zoom_level,
        }

    def track_params(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "start_lat": self.start_lat,
            "start_lon": self.start_lon,
            "end_lat": self.end_lat,
            "end_lon": self.end_lon,
        }


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def check_unique_poi_ids(pois: Sequence[Poi]) -> None:
    """
    Raises:
        DuplicatePoiError: If two POIs share an id
    """
    seen = set()
    for poi in pois:
        if poi.id in seen:
            raise DuplicatePoiError(f"Duplicate POI id in list: {poi.id}")
        seen.add(poi.id)
