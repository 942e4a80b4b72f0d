#!/usr/bin/env python3
"""
GPR Track Viewer - Configuration Types

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized, typed configuration for the viewer using
frozen dataclasses for immutability and type safety.

This follows the Typed Configuration Architecture pattern:
- viz_config.py defines VIZ_CONFIG_DATA dictionary (user edits this)
- viz_config_types.py defines frozen dataclasses (this file)
- VIZ_CONFIG module-level instance for the server / composition root
- Components receive their own sub-config, never the whole dict

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 BACKEND API CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

API_URL_ENV_VAR = "GPR_VIZ_API_URL"


@dataclass(frozen=True)
class ApiConfig:
    """Configuration for the remote GPR/GPS backend."""

    base_url: str = "http://localhost:8000/api"
    health_url: str = "http://localhost:8000/health"
    timeout_s: float = 10.0
    mirror_pois: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ApiConfig":
        """Create from dictionary; GPR_VIZ_API_URL overrides base_url."""
        return cls(
            base_url=os.environ.get(
                API_URL_ENV_VAR, d.get("base_url", "http://localhost:8000/api")
            ),
            health_url=d.get("health_url", "http://localhost:8000/health"),
            timeout_s=float(d.get("timeout_s", 10.0)),
            mirror_pois=bool(d.get("mirror_pois", False)),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 🖥️ SERVER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ServerConfig:
    """Flask bind address."""

    host: str = "127.0.0.1"
    port: int = 5052

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ServerConfig":
        """Create from dictionary."""
        return cls(host=d.get("host", "127.0.0.1"), port=int(d.get("port", 5052)))


# ═══════════════════════════════════════════════════════════════════════════
# 📈 SLICE VIEWER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SliceViewConfig:
    """Heatmap appearance and navigation step sizes."""

    colorscale: str = "RdBu"
    reversescale: bool = True
    zsmooth: str = "best"
    paper_bgcolor: str = "#0a0a0a"
    plot_bgcolor: str = "#0a0a0a"
    axis_color: str = "#a0aec0"
    grid_color: str = "#2d3748"
    zoom_in_factor: float = 0.8
    zoom_out_factor: float = 1.6
    seek_amount: float = 50.0
    poi_marker_size: int = 12

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SliceViewConfig":
        """Create from dictionary."""
        return cls(
            colorscale=d.get("colorscale", "RdBu"),
            reversescale=d.get("reversescale", True),
            zsmooth=d.get("zsmooth", "best"),
            paper_bgcolor=d.get("paper_bgcolor", "#0a0a0a"),
            plot_bgcolor=d.get("plot_bgcolor", "#0a0a0a"),
            axis_color=d.get("axis_color", "#a0aec0"),
            grid_color=d.get("grid_color", "#2d3748"),
            zoom_in_factor=float(d.get("zoom_in_factor", 0.8)),
            zoom_out_factor=float(d.get("zoom_out_factor", 1.6)),
            seek_amount=float(d.get("seek_amount", 50)),
            poi_marker_size=int(d.get("poi_marker_size", 12)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "colorscale": self.colorscale,
            "reversescale": self.reversescale,
            "zoom_in_factor": self.zoom_in_factor,
            "zoom_out_factor": self.zoom_out_factor,
            "seek_amount": self.seek_amount,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ TRACK MAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TrackMapConfig:
    """Configuration for the track map display."""

    center_lat: float = 42.99
    center_lon: float = -81.22
    zoom: float = 13
    style: str = "carto-darkmatter"
    track_color: str = "#3498db"
    track_width: float = 4
    start_color: str = "#2ecc71"
    end_color: str = "#e74c3c"
    mile_marker_color: str = "#f39c12"
    position_color: str = "#e74c3c"
    highlight_color: str = "#e74c3c"
    fit_padding_deg: float = 0.002
    nearest_threshold_deg: float = 0.001

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackMapConfig":
        """Create from dictionary."""
        center = d.get("center", [42.99, -81.22])
        return cls(
            center_lat=(
                center[0] if isinstance(center, list) else d.get("center_lat", 42.99)
            ),
            center_lon=(
                center[1] if isinstance(center, list) else d.get("center_lon", -81.22)
            ),
            zoom=d.get("zoom", 13),
            style=d.get("style", "carto-darkmatter"),
            track_color=d.get("track_color", "#3498db"),
            track_width=d.get("track_width", 4),
            start_color=d.get("start_color", "#2ecc71"),
            end_color=d.get("end_color", "#e74c3c"),
            mile_marker_color=d.get("mile_marker_color", "#f39c12"),
            position_color=d.get("position_color", "#e74c3c"),
            highlight_color=d.get("highlight_color", "#e74c3c"),
            fit_padding_deg=float(d.get("fit_padding_deg", 0.002)),
            nearest_threshold_deg=float(d.get("nearest_threshold_deg", 0.001)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "center": [self.center_lat, self.center_lon],
            "zoom": self.zoom,
            "style": self.style,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🔗 SYNC CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SyncConfig:
    """Viewer synchronization defaults."""

    enabled: bool = True
    position_throttle_ms: float = 50.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SyncConfig":
        """Create from dictionary."""
        return cls(
            enabled=d.get("enabled", True),
            position_throttle_ms=float(d.get("position_throttle_ms", 50)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "position_throttle_ms": self.position_throttle_ms,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🧪 SYNTHETIC DATASET CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MockDataConfig:
    """Parameters of the offline synthetic dataset."""

    seed: int = 20250615
    width: int = 1200
    height: int = 200
    track_points: int = 500
    date: str = "2025-06-15"
    start_lat: float = 42.9647
    start_lon: float = -81.2897
    end_lat: float = 43.0556
    end_lon: float = -81.0823
    depth_range_m: Tuple[float, float] = (0.0, 6.0)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MockDataConfig":
        """Create from dictionary."""
        depth = d.get("depth_range_m", [0, 6])
        return cls(
            seed=int(d.get("seed", 20250615)),
            width=int(d.get("width", 1200)),
            height=int(d.get("height", 200)),
            track_points=int(d.get("track_points", 500)),
            date=d.get("date", "2025-06-15"),
            start_lat=float(d.get("start_lat", 42.9647)),
            start_lon=float(d.get("start_lon", -81.2897)),
            end_lat=float(d.get("end_lat", 43.0556)),
            end_lon=float(d.get("end_lon", -81.0823)),
            depth_range_m=(float(depth[0]), float(depth[1])),
        )


# ═══════════════════════════════════════════════════════════════════════════
# 📦 MAIN VIZ CONFIGURATION CLASS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class VizConfig:
    """
    Main configuration class for the GPR track viewer.

    Access via the module-level VIZ_CONFIG instance.
    """

    api: ApiConfig
    server: ServerConfig
    slice: SliceViewConfig
    map: TrackMapConfig
    poi_colors: Dict[str, str]
    sync: SyncConfig
    mock: MockDataConfig

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VizConfig":
        """Create from dictionary."""
        return cls(
            api=ApiConfig.from_dict(d.get("api", {})),
            server=ServerConfig.from_dict(d.get("server", {})),
            slice=SliceViewConfig.from_dict(d.get("slice", {})),
            map=TrackMapConfig.from_dict(d.get("map", {})),
            poi_colors=d.get(
                "poi_colors",
                {
                    "culvert": "#FF6B6B",
                    "pipe": "#4ECDC4",
                    "void": "#45B7D1",
                    "anomaly": "#FFEAA7",
                    "other": "#DFE6E9",
                },
            ),
            sync=SyncConfig.from_dict(d.get("sync", {})),
            mock=MockDataConfig.from_dict(d.get("mock", {})),
        )

    @classmethod
    def defaults(cls) -> "VizConfig":
        """Create with all default values."""
        return cls.from_dict({})

    def poi_color(self, poi_type: str) -> str:
        return self.poi_colors.get(poi_type, self.poi_colors.get("other", "#DFE6E9"))

    def to_frontend_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for frontend JSON API."""
        return {
            "slice": self.slice.to_dict(),
            "map": self.map.to_dict(),
            "poiColors": self.poi_colors,
            "sync": self.sync.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# 📌 MODULE-LEVEL CONFIG INSTANCE
# ═══════════════════════════════════════════════════════════════════════════

# Import configuration data from separate file (user-editable)
from gpr_viz.viz_config import VIZ_CONFIG_DATA

# Edit viz_config.py to change settings (restart server after changes)
VIZ_CONFIG: VizConfig = VizConfig.from_dict(VIZ_CONFIG_DATA)


def get_frontend_config() -> Dict[str, Any]:
    """
    Get configuration for frontend JavaScript.

    Returns a dict suitable for JSON serialization and use in the frontend.
    """
    return VIZ_CONFIG.to_frontend_dict()
