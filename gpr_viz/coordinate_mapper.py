#!/usr/bin/env python3
"""
Coordinate Mapper - Slice / Geographic / Track Space Conversion

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Convert between the three coordinate spaces of the viewer.

- Slice-pixel space: x = distance column, y = depth row
- Geographic space: latitude / longitude / depth in meters
- Track space: index into the ordered GPS track (cumulative mileage)

The join key between slice space and track space is the linear fraction
t = slice_x / width. Every function here is pure: no module state, no
rendering dependency.

KNOWN LIMITATIONS:
==================
1. Latitude/longitude are interpolated along a straight line between the
   slice start and end corners. Good enough for short survey segments; it
   ignores great-circle geometry and track curvature.
2. Nearest-track-point search uses Euclidean distance in degree space.
   A degree of longitude shrinks with latitude, so the ~0.001 degree
   threshold is only "roughly 100 m" at mid-latitudes. The map click is a
   "near the line" gesture, not a measurement.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import math
from typing import Optional, Sequence

from gpr_viz.models import (
    GeoPosition,
    NearestTrackPoint,
    SliceDataset,
    TrackPoint,
)

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

# Max degree-space distance accepted for a map click (~100 m mid-latitude)
DEFAULT_NEAREST_THRESHOLD_DEG = 0.001


# ═══════════════════════════════════════════════════════════════════════════
# 🧭 SLICE -> GEO
# ═══════════════════════════════════════════════════════════════════════════


def slice_to_geo(
    slice_x: float,
    slice_y: float,
    dataset: Optional[SliceDataset],
    track: Optional[Sequence[TrackPoint]] = None,
) -> Optional[GeoPosition]:
    """
    Map a slice pixel to geographic position, depth and track mileage.

    Args:
        slice_x: Distance column (not clamped; values outside [0, width)
            extrapolate beyond the slice corners)
        slice_y: Depth row
        dataset: Loaded slice dataset, or None before the first load
        track: Optional GPS track sharing the same survey line

    Returns:
        GeoPosition, or None when no dataset is loaded.
    """
    if dataset is None:
        return None

    bounds = dataset.bounds
    t = slice_x / dataset.width
    lat = bounds.start_lat + (bounds.end_lat - bounds.start_lat) * t
    lon = bounds.start_lon + (bounds.end_lon - bounds.start_lon) * t

    depth_t = slice_y / dataset.height
    d0, d1 = bounds.depth_range_m
    depth_m = d0 + (d1 - d0) * depth_t

    mile_marker = None
    track_index = None
    if track:
        track_index = fraction_to_track_index(t, len(track))
        mile_marker = track[track_index].distance_miles

    return GeoPosition(
        lat=lat,
        lon=lon,
        depth_m=depth_m,
        mile_marker=mile_marker,
        track_index=track_index,
    )


def fraction_to_track_index(t: float, track_length: int) -> int:
    """Track index for fraction t along the slice, clamped to [0, N-1]."""
    index = math.floor(t * (track_length - 1))
    return max(0, min(index, track_length - 1))


# ═══════════════════════════════════════════════════════════════════════════
# 🛰️ TRACK -> SLICE
# ═══════════════════════════════════════════════════════════════════════════


def track_index_to_slice_x(track_index: int, track_length: int, width: int) -> int:
    """
    Slice column corresponding to a track index.

    Uses floor(track_index / track_length * width), the mapping used when a
    map click recentres the slice viewers.
    """
    if track_length <= 0:
        return 0
    return math.floor((track_index / track_length) * width)


def track_point_at(
    track: Optional[Sequence[TrackPoint]], index: int
) -> Optional[TrackPoint]:
    """Return track[index], or None for a missing track or out-of-range index."""
    if not track or index < 0 or index >= len(track):
        return None
    return track[index]


# ═══════════════════════════════════════════════════════════════════════════
# 🔍 GEO -> TRACK (NEAREST POINT)
# ═══════════════════════════════════════════════════════════════════════════


def find_nearest_track_point(
    lat: float,
    lon: float,
    track: Optional[Sequence[TrackPoint]],
    max_distance_deg: float = DEFAULT_NEAREST_THRESHOLD_DEG,
) -> Optional[NearestTrackPoint]:
    """
    Find the track point closest to (lat, lon) by linear scan.

    Args:
        lat: Query latitude
        lon: Query longitude
        track: GPS track to search
        max_distance_deg: Reject the match unless its distance is below this

    Returns:
        NearestTrackPoint, or None for an empty track or a click too far from
        the line.
    """
    if not track:
        return None

    nearest: Optional[TrackPoint] = None
    min_distance = math.inf
    for point in track:
        dist = math.hypot(point.lat - lat, point.lon - lon)
        if dist < min_distance:
            min_distance = dist
            nearest = point

    if nearest is None or min_distance >= max_distance_deg:
        return None
    return NearestTrackPoint(point=nearest, distance_deg=min_distance)
