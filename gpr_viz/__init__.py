"""
GPR Track Viewer

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Browse ground-penetrating-radar slices side by side with the
GPS track they were recorded along, keeping both slice viewers, the map and
a shared list of points of interest in sync.

Key Features:
- Two synchronized GPR heatmap viewers (pan/zoom mirrored, no echo)
- GPS track map with mile markers and a live position indicator
- Slice pixel <-> lat/lon/depth/mile mapping
- Points of interest created by clicking a viewer, exportable to CSV
- Backend REST client with automatic fallback to a synthetic dataset

Usage:
    from gpr_viz import GprApp

    viewer = GprApp()
    viewer.load_sample_data()
    figures = viewer.figures()

    # or serve the interactive page:
    #   gpr-viz [BACKEND_API_URL]

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

from .app import GprApp
from .viz_config_types import VIZ_CONFIG, VizConfig

__all__ = [
    "GprApp",
    "VIZ_CONFIG",
    "VizConfig",
]
