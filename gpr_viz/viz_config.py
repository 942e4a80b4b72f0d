#!/usr/bin/env python3
"""
GPR Track Viewer - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Configuration dictionary for the GPR/GPS viewer.
This is the user-facing configuration file - edit values here.

Pattern:
- viz_config.py defines the VIZ_CONFIG_DATA dictionary (edit this)
- viz_config_types.py defines typed dataclasses and loads from VIZ_CONFIG_DATA

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

from typing import Any, Dict

# ═══════════════════════════════════════════════════════════════════════════
# 🎨 GPR TRACK VIEWER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

VIZ_CONFIG_DATA: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 BACKEND API
    # ═══════════════════════════════════════════════════════════════════════
    "api": {
        "base_url": "http://localhost:8000/api",  # GPR_VIZ_API_URL overrides
        "health_url": "http://localhost:8000/health",
        "timeout_s": 10.0,
        "mirror_pois": False,  # Fire-and-forget POI create/delete to backend
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🖥️ SERVER
    # ═══════════════════════════════════════════════════════════════════════
    "server": {
        "host": "127.0.0.1",
        "port": 5052,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📈 SLICE VIEWER SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "slice": {
        "colorscale": "RdBu",
        "reversescale": True,
        "zsmooth": "best",
        "paper_bgcolor": "#0a0a0a",
        "plot_bgcolor": "#0a0a0a",
        "axis_color": "#a0aec0",
        "grid_color": "#2d3748",
        "zoom_in_factor": 0.8,  # New span = span * factor
        "zoom_out_factor": 1.6,
        "seek_amount": 50,  # Samples per seek step
        "poi_marker_size": 12,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ TRACK MAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "map": {
        "center": [42.99, -81.22],  # [lat, lon] - Default center
        "zoom": 13,
        "style": "carto-darkmatter",
        "track_color": "#3498db",
        "track_width": 4,
        "start_color": "#2ecc71",
        "end_color": "#e74c3c",
        "mile_marker_color": "#f39c12",
        "position_color": "#e74c3c",
        "highlight_color": "#e74c3c",
        "fit_padding_deg": 0.002,
        "nearest_threshold_deg": 0.001,  # ~100 m at mid-latitudes
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📍 POI COLOURS
    # ═══════════════════════════════════════════════════════════════════════
    "poi_colors": {
        "culvert": "#FF6B6B",
        "pipe": "#4ECDC4",
        "void": "#45B7D1",
        "anomaly": "#FFEAA7",
        "other": "#DFE6E9",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🔗 SYNCHRONIZATION
    # ═══════════════════════════════════════════════════════════════════════
    "sync": {
        "enabled": True,
        "position_throttle_ms": 50,  # Max 20 map updates per second
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🧪 SYNTHETIC DATASET
    # ═══════════════════════════════════════════════════════════════════════
    "mock": {
        "seed": 20250615,
        "width": 1200,
        "height": 200,
        "track_points": 500,
        "date": "2025-06-15",
        # Railway section near London, Ontario
        "start_lat": 42.9647,
        "start_lon": -81.2897,
        "end_lat": 43.0556,
        "end_lon": -81.0823,
        "depth_range_m": [0, 6],
    },
}
