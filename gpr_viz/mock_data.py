#!/usr/bin/env python3
"""
Synthetic GPR / GPS Dataset Generator

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Produce an offline dataset with exactly the same shape as a
backend slice response, used for "Load Sample Data", as the fallback when
the backend is unreachable, and as a test fixture.

Key Features:
1. GPS track: straight line between two corners with sinusoidal + random
   drift, cumulative geodesic distance via pyproj.Geod
2. GPR grid: depth-attenuated base signal, horizontal soil layers,
   hyperbolic reflections (buried point objects), vertical features
   (rebar/utilities) and diffuse void signatures
3. Deterministic: every random draw comes from one numpy Generator seeded
   from MockDataConfig.seed

Dependencies:
- numpy (vectorised grid synthesis)
- pyproj (WGS84 geodesic distances)

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import numpy as np
from pyproj import Geod

from gpr_viz.models import SliceDataset
from gpr_viz.viz_config_types import MockDataConfig

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# 🔧 CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

KM_TO_MILES = 0.621371
SURVEY_SPEED_MPH = 30.0
RECORDING_START = datetime(2025, 6, 15, 8, 0, 0, tzinfo=timezone.utc)

_GEOD = Geod(ellps="WGS84")

# (center_x, center_y, spread, amplitude) - buried point objects
HYPERBOLAS = [
    (80, 38, 0.3, 60),  # Culvert #1
    (180, 55, 0.25, 50),  # Pipe #1
    (300, 42, 0.35, 55),
    (420, 70, 0.2, 45),
    (520, 35, 0.32, 58),  # Culvert #2
    (650, 60, 0.28, 48),
    (780, 48, 0.3, 52),
    (880, 80, 0.22, 42),
    (980, 40, 0.33, 56),
    (1100, 52, 0.27, 50),
]

# (x, y_min, y_max, amplitude) - near-vertical rebar / utility returns
VERTICAL_FEATURES = [
    (120, 15, 70, 50),
    (350, 20, 55, 45),
    (580, 18, 65, 48),
    (820, 22, 60, 44),
    (1050, 16, 58, 46),
]

# (center_x, center_y, radius_x, radius_y, amplitude) - diffuse cavities
VOIDS = [
    (260, 90, 25, 15, 35),
    (700, 110, 30, 20, 30),
    (950, 95, 22, 18, 32),
]

# (y_min, y_max, amplitude) - horizontal soil layer reflections
LAYERS = [
    (20, 28, 40),
    (55, 65, 30),
    (100, 112, 25),
    (140, 155, 20),
    (175, 185, 15),
]

MOCK_POIS: List[Dict[str, Any]] = [
    {
        "id": "poi-1",
        "type": "culvert",
        "label": "Culvert #1",
        "slice_x": 80,
        "slice_y": 38,
        "lat": 42.9712,
        "lon": -81.2765,
        "mile_marker": 0.42,
        "notes": 'Metal culvert, approx 24" diameter',
    },
    {
        "id": "poi-2",
        "type": "pipe",
        "label": "Utility Pipe #1",
        "slice_x": 180,
        "slice_y": 55,
        "lat": 42.9823,
        "lon": -81.2556,
        "mile_marker": 1.14,
        "notes": "Possible water main",
    },
    {
        "id": "poi-3",
        "type": "void",
        "label": "Void Area",
        "slice_x": 260,
        "slice_y": 90,
        "lat": 42.9912,
        "lon": -81.2378,
        "mile_marker": 1.72,
        "notes": "Subsurface void - investigate",
    },
    {
        "id": "poi-4",
        "type": "anomaly",
        "label": "Unknown Feature",
        "slice_x": 420,
        "slice_y": 70,
        "lat": 43.0089,
        "lon": -81.1978,
        "mile_marker": 2.89,
        "notes": "Deep anomaly - needs investigation",
    },
    {
        "id": "poi-5",
        "type": "culvert",
        "label": "Culvert #2",
        "slice_x": 520,
        "slice_y": 35,
        "lat": 43.0178,
        "lon": -81.1756,
        "mile_marker": 3.56,
        "notes": "Concrete culvert",
    },
]


# ═══════════════════════════════════════════════════════════════════════════
# 🛰️ GPS TRACK
# ═══════════════════════════════════════════════════════════════════════════


def generate_mock_gps_track(
    start_lat: float,
    start_lon: float,
    end_lat: float,
    end_lon: float,
    num_points: int = 500,
    rng: Optional[np.random.Generator] = None,
) -> List[Dict[str, Any]]:
    """
    Generate a GPS track along a straight survey line with GPS-like drift.

    Args:
        start_lat, start_lon: First sample position
        end_lat, end_lon: Last sample position (before drift)
        num_points: Number of samples (>= 2)
        rng: Random generator; a fresh default_rng(0) when omitted

    Returns:
        List of point dicts in the backend track format.
    """
    if num_points < 2:
        raise ValueError(f"num_points must be >= 2, got {num_points}")
    rng = rng if rng is not None else np.random.default_rng(0)

    i = np.arange(num_points)
    t = i / (num_points - 1)
    drift = 0.0001 * np.sin(i * 0.3) + (rng.random(num_points) - 0.5) * 0.00005
    lats = start_lat + (end_lat - start_lat) * t + drift
    lons = start_lon + (end_lon - start_lon) * t + drift * 0.5

    # Geodesic step lengths in meters between consecutive samples
    _, _, steps_m = _GEOD.inv(lons[:-1], lats[:-1], lons[1:], lats[1:])
    cumulative_km = np.concatenate([[0.0], np.cumsum(np.asarray(steps_m) / 1000.0)])
    miles = cumulative_km * KM_TO_MILES

    elevation = 200 + np.sin(i * 0.1) * 20 + rng.random(num_points) * 5
    speed = 40 + rng.random(num_points) * 20

    track = []
    for k in range(num_points):
        hours_elapsed = miles[k] / SURVEY_SPEED_MPH
        timestamp = RECORDING_START + timedelta(hours=float(hours_elapsed))
        track.append(
            {
                "index": k,
                "lat": float(lats[k]),
                "lon": float(lons[k]),
                "distance_km": float(cumulative_km[k]),
                "distance_miles": float(miles[k]),
                "timestamp": timestamp.isoformat().replace("+00:00", "Z"),
                "elevation": float(elevation[k]),
                "speed_kmh": float(speed[k]),
            }
        )
    return track


# ═══════════════════════════════════════════════════════════════════════════
# 📡 GPR SLICE
# ═══════════════════════════════════════════════════════════════════════════


def _hyperbola(
    x: np.ndarray, y: np.ndarray, center_x: float, center_y: float, spread: float
) -> np.ndarray:
    """Hyperbolic reflection, the GPR signature of a buried point object."""
    dx = (x - center_x) * spread
    hyp_y = center_y + np.sqrt(1 + dx * dx) * 8
    distance = np.abs(y - hyp_y)
    return np.where(distance < 3, np.exp(-distance * 0.5), 0.0)


def _void(
    x: np.ndarray,
    y: np.ndarray,
    center_x: float,
    center_y: float,
    radius_x: float,
    radius_y: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Diffuse elliptical reflection of a subsurface cavity."""
    dist = np.sqrt(((x - center_x) / radius_x) ** 2 + ((y - center_y) / radius_y) ** 2)
    jitter = 0.8 + rng.random(dist.shape) * 0.4
    return np.where(dist < 1, np.exp(-dist * 2) * jitter, 0.0)


def generate_mock_gpr_data(
    width: int = 1200,
    height: int = 200,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Generate a synthetic GPR intensity grid.

    Returns:
        Integer array of shape (height, width) with values in [0, 255].
    """
    rng = rng if rng is not None else np.random.default_rng(0)
    y, x = np.mgrid[0:height, 0:width].astype(float)

    # Base signal attenuates with depth
    intensity = 128 - (y / height) * 60

    for y_min, y_max, amplitude in LAYERS:
        band = (y > y_min) & (y < y_max)
        if (y_min, y_max) == (55, 65):
            intensity += np.where(band, amplitude + np.sin(x * 0.08) * 10, 0.0)
        else:
            intensity += np.where(band, amplitude, 0.0)

    intensity += (rng.random((height, width)) - 0.5) * 30

    for center_x, center_y, spread, amplitude in HYPERBOLAS:
        intensity += _hyperbola(x, y, center_x, center_y, spread) * amplitude

    for feature_x, y_min, y_max, amplitude in VERTICAL_FEATURES:
        mask = (np.abs(x - feature_x) < 2) & (y > y_min) & (y < y_max)
        intensity += np.where(mask, amplitude, 0.0)

    for center_x, center_y, radius_x, radius_y, amplitude in VOIDS:
        intensity += _void(x, y, center_x, center_y, radius_x, radius_y, rng) * amplitude

    return np.clip(np.round(intensity), 0, 255).astype(int)


# ═══════════════════════════════════════════════════════════════════════════
# 📦 COMPLETE DATASET
# ═══════════════════════════════════════════════════════════════════════════


def get_mock_pois() -> List[Dict[str, Any]]:
    """Pre-marked points of interest bundled with the synthetic dataset."""
    return [dict(poi) for poi in MOCK_POIS]


def generate_mock_dataset(config: Optional[MockDataConfig] = None) -> Dict[str, Any]:
    """
    Generate a complete synthetic dataset in the backend slice format.

    Args:
        config: Generator parameters (defaults to MockDataConfig())

    Returns:
        Dict with the same keys as a backend slice response plus
        "gps_track" and "pois".
    """
    config = config or MockDataConfig()
    rng = np.random.default_rng(config.seed)

    gps_track = generate_mock_gps_track(
        config.start_lat,
        config.start_lon,
        config.end_lat,
        config.end_lon,
        config.track_points,
        rng=rng,
    )
    gpr_data = generate_mock_gpr_data(config.width, config.height, rng=rng)

    first, last = gps_track[0], gps_track[-1]
    logger.info(
        f"Generated synthetic dataset {config.width}x{config.height}, "
        f"{len(gps_track)} track points, {last['distance_miles']:.2f} miles"
    )

    return {
        "date": config.date,
        "start_lat": config.start_lat,
        "start_lon": config.start_lon,
        "end_lat": config.end_lat,
        "end_lon": config.end_lon,
        "gps_track": gps_track,
        "gpr_data": gpr_data,
        "width": int(gpr_data.shape[1]),
        "height": int(gpr_data.shape[0]),
        "pois": get_mock_pois(),
        "metadata": {
            "total_distance_km": last["distance_km"],
            "total_distance_miles": last["distance_miles"],
            "depth_range_m": list(config.depth_range_m),
            "recording_start": first["timestamp"],
            "recording_end": last["timestamp"],
            "sample_rate": "simulated",
            "antenna_frequency": "400 MHz (simulated)",
        },
    }


def load_mock_dataset(config: Optional[MockDataConfig] = None) -> SliceDataset:
    """Synthetic dataset parsed through the same path as backend data."""
    return SliceDataset.from_dict(generate_mock_dataset(config))
