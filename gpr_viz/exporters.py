"""
CSV Export Module - POIs and GPS track.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn the in-memory POI list and GPS track into CSV for
import into GIS / spreadsheet tools.

Key Entry Points:
- export_pois_to_csv(): POI table (one row per POI, store order)
- export_track_to_csv(): GPS track samples

Both return the CSV text and, when csv_path is given, also write it there
(overwriting an existing file).

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from gpr_viz.models import Poi, TrackPoint

logger = logging.getLogger(__name__)

POI_COLUMNS = [
    "POI_ID",
    "Type",
    "Label",
    "Slice_X",
    "Slice_Y",
    "Latitude",
    "Longitude",
    "Mile_Marker",
    "Notes",
]

TRACK_COLUMNS = [
    "Index",
    "Latitude",
    "Longitude",
    "Distance_km",
    "Distance_miles",
    "Timestamp",
    "Elevation_m",
    "Speed_kmh",
]


# ═══════════════════════════════════════════════════════════════════════════
# 📍 POIs
# ═══════════════════════════════════════════════════════════════════════════


def pois_to_dataframe(pois: Sequence[Poi]) -> pd.DataFrame:
    """POI table with fixed columns; empty input gives headers only."""
    rows = [
        {
            "POI_ID": poi.id,
            "Type": poi.type.value,
            "Label": poi.label,
            "Slice_X": poi.slice_x,
            "Slice_Y": poi.slice_y,
            "Latitude": round(poi.lat, 6),
            "Longitude": round(poi.lon, 6),
            "Mile_Marker": (
                round(poi.mile_marker, 2) if poi.mile_marker is not None else None
            ),
            "Notes": poi.notes,
        }
        for poi in pois
    ]
    return pd.DataFrame(rows, columns=POI_COLUMNS)


def export_pois_to_csv(
    pois: Sequence[Poi],
    csv_path: Optional[Path] = None,
) -> str:
    """
    Export POIs to CSV.

    Args:
        pois: POIs in store order
        csv_path: Optional file to write (parent directories are created)

    Returns:
        The CSV text
    """
    df = pois_to_dataframe(pois)
    return _write(df, csv_path, f"{len(df)} POIs")


# ═══════════════════════════════════════════════════════════════════════════
# 🛰️ GPS TRACK
# ═══════════════════════════════════════════════════════════════════════════


def export_track_to_csv(
    track: Sequence[TrackPoint],
    csv_path: Optional[Path] = None,
) -> str:
    rows = [
        {
            "Index": p.index,
            "Latitude": p.lat,
            "Longitude": p.lon,
            "Distance_km": round(p.distance_km, 4),
            "Distance_miles": round(p.distance_miles, 4),
            "Timestamp": p.timestamp,
            "Elevation_m": p.elevation_m,
            "Speed_kmh": p.speed_kmh,
        }
        for p in track
    ]
    df = pd.DataFrame(rows, columns=TRACK_COLUMNS)
    return _write(df, csv_path, f"{len(df)} track points")


def _write(df: pd.DataFrame, csv_path: Optional[Path], what: str) -> str:
    text = df.to_csv(index=False)
    if csv_path is not None:
        csv_path = Path(csv_path)
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        csv_path.write_text(text, encoding="utf-8")
        logger.info(f"📤 Exported {what} to: {csv_path}")
    return text
