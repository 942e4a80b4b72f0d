#!/usr/bin/env python3
"""
GPR Track Viewer - Flask Server

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Serve the viewer page and the JSON API it calls. All
viewer state lives in one GprApp instance created by initialize_services();
every route that touches it runs under a single lock. /api/query releases
the lock while the backend fetch is in flight.

Response Shape:
    {"state": {...page state...}, "figures": {"viewer1": fig, ...}}
Figures are serialised with plotly's JSON encoder (numpy-aware) and only
the ones a route may have changed are included.

Navigation Guide:
- PAGE / CONFIG: "/", /api/config, /api/state, /api/health
- LOADING: /api/sample, /api/query
- SLICE EVENTS: /api/slice/<n>/hover|click|relayout
- MAP EVENTS: /api/map/click|hover|fit|markers
- CONTROLS: /api/controls/<action>, /api/controls/key, /api/active-viewer,
  /api/poi-mode, /api/colorscale
- POIs: /api/pois, /api/pois/<index>, /api/pois/<index>/navigate,
  /api/pois/export, /api/track/export
- STARTUP: initialize_services(), main()

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import dataclasses
import functools
import logging
import sys
import threading
from typing import Any, Dict, Iterable, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from plotly.io.json import to_json_plotly

from gpr_viz.app import GprApp
from gpr_viz.data_provider import ApiClient
from gpr_viz.html_template import generate_html
from gpr_viz.models import DataProviderError, GprVizError, QueryValidationError
from gpr_viz.viz_config_types import VIZ_CONFIG, VizConfig, get_frontend_config

# ═══════════════════════════════════════════════════════════════════════════
# 🌐 FLASK APPLICATION
# ═══════════════════════════════════════════════════════════════════════════

app = Flask(__name__)
CORS(app)

# Global service - initialized on startup
gpr_app: Optional[GprApp] = None
_app_lock = threading.Lock()

# Logging setup
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
logger = logging.getLogger(__name__)

ALL_FIGURES = ("viewer1", "viewer2", "map")
SLICE_FIGURES = ("viewer1", "viewer2")


def _state_response(figures: Iterable[str] = ALL_FIGURES, **extra: Any) -> Response:
    """Page state plus the named figures, as a JSON response."""
    payload: Dict[str, Any] = {"state": gpr_app.snapshot(), **extra}
    names = tuple(figures)
    if names:
        all_figures = gpr_app.figures()
        payload["figures"] = {
            name: all_figures[name].to_plotly_json() for name in names
        }
    return Response(to_json_plotly(payload), mimetype="application/json")


def with_app(view):
    """Reject calls before initialization; serialise the rest."""

    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        if gpr_app is None:
            return jsonify({"error": "Server not initialized"}), 500
        with _app_lock:
            return view(*args, **kwargs)

    return wrapper


def _json_body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _float_arg(data: Dict[str, Any], key: str) -> float:
    try:
        return float(data[key])
    except (KeyError, TypeError, ValueError):
        raise QueryValidationError(f"Missing or invalid '{key}'") from None


@app.errorhandler(QueryValidationError)
def handle_validation_error(e: QueryValidationError):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(GprVizError)
def handle_viz_error(e: GprVizError):
    logger.error(f"❌ {type(e).__name__}: {e}")
    return jsonify({"error": str(e)}), 500


# ═══════════════════════════════════════════════════════════════════════════
# 🛣️ PAGE / CONFIG ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/")
def index() -> str:
    """Serve the viewer page."""
    config = gpr_app.config if gpr_app is not None else VIZ_CONFIG
    return generate_html(config)


@app.route("/api/config")
def get_config():
    return jsonify(get_frontend_config())


@app.route("/api/state")
@with_app
def get_state():
    """Full page state with all three figures."""
    return _state_response()


@app.route("/api/health")
@with_app
def get_health():
    gpr_app.check_connection()
    return _state_response(figures=())


# ═══════════════════════════════════════════════════════════════════════════
# 📂 LOADING ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/sample", methods=["POST"])
@with_app
def load_sample():
    gpr_app.load_sample_data()
    return _state_response()


@app.route("/api/query", methods=["POST"])
def load_query():
    """
    Load slice + track for a date and two corners.

    The backend fetch runs outside the lock so other routes stay responsive;
    a query superseded by a newer one returns "applied": false.

    Request Body:
        {"date", "start_lat", "start_lon", "end_lat", "end_lon", "zoom_level"?}

    Returns:
        400 {"error": message} for an invalid query, else the new state.
    """
    if gpr_app is None:
        return jsonify({"error": "Server not initialized"}), 500

    with _app_lock:
        seq, params = gpr_app.begin_load(_json_body())

    result, error = None, None
    try:
        result = gpr_app.fetch_query(params)
    except DataProviderError as e:
        error = e

    with _app_lock:
        applied = gpr_app.finish_load(seq, params, result, error)
        return _state_response(applied=applied)


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ SLICE EVENT ROUTES
# ═══════════════════════════════════════════════════════════════════════════


def _slice_viewer(n: int):
    try:
        return gpr_app.viewer(n)
    except ValueError:
        return None


@app.route("/api/slice/<int:n>/hover", methods=["POST"])
@with_app
def slice_hover(n: int):
    viewer = _slice_viewer(n)
    if viewer is None:
        return jsonify({"error": f"Unknown viewer {n}"}), 404
    data = _json_body()
    before = gpr_app.track_map.position_index
    viewer.handle_hover(_float_arg(data, "x"), _float_arg(data, "y"), data.get("z"))
    moved = gpr_app.track_map.position_index != before
    return _state_response(figures=("map",) if moved else ())


@app.route("/api/slice/<int:n>/click", methods=["POST"])
@with_app
def slice_click(n: int):
    viewer = _slice_viewer(n)
    if viewer is None:
        return jsonify({"error": f"Unknown viewer {n}"}), 404
    data = _json_body()
    viewer.handle_click(_float_arg(data, "x"), _float_arg(data, "y"), data.get("z"))
    return _state_response()


@app.route("/api/slice/<int:n>/relayout", methods=["POST"])
@with_app
def slice_relayout(n: int):
    """Apply a Plotly relayout event; the other viewer follows when synced
    and the map highlights the visible track section."""
    viewer = _slice_viewer(n)
    if viewer is None:
        return jsonify({"error": f"Unknown viewer {n}"}), 404
    viewer.handle_relayout(_json_body())
    other = "viewer2" if n == 1 else "viewer1"
    figures = (other, "map") if gpr_app.sync.enabled else ("map",)
    return _state_response(figures=figures)


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ MAP ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/map/click", methods=["POST"])
@with_app
def map_click():
    data = _json_body()
    nearest = gpr_app.track_map.handle_click(_float_arg(data, "lat"), _float_arg(data, "lon"))
    return _state_response(track_index=nearest.index if nearest else None)


@app.route("/api/map/hover", methods=["POST"])
@with_app
def map_hover():
    data = _json_body()
    gpr_app.track_map.handle_hover(_float_arg(data, "lat"), _float_arg(data, "lon"))
    return _state_response(figures=())


@app.route("/api/map/fit", methods=["POST"])
@with_app
def map_fit():
    gpr_app.controls.fit_map()
    return _state_response(figures=("map",))


@app.route("/api/map/markers", methods=["POST"])
@with_app
def map_markers():
    gpr_app.controls.toggle_map_markers()
    return _state_response(figures=("map",))


# ═══════════════════════════════════════════════════════════════════════════
# 🎛️ CONTROL ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/controls/key", methods=["POST"])
@with_app
def control_key():
    data = _json_body()
    handled = gpr_app.controls.handle_key(str(data.get("key", "")), bool(data.get("ctrl")))
    return _state_response(figures=ALL_FIGURES if handled else (), handled=handled)


@app.route("/api/controls/<action>", methods=["POST"])
@with_app
def control_action(action: str):
    try:
        gpr_app.controls.dispatch(action)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return _state_response()


@app.route("/api/active-viewer", methods=["POST"])
@with_app
def set_active_viewer():
    try:
        gpr_app.controls.set_active_viewer(str(_json_body().get("viewer", "")))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return _state_response(figures=())


@app.route("/api/poi-mode", methods=["POST"])
@with_app
def set_poi_mode():
    """Request Body: {"enabled"?: bool, "type"?: str}"""
    data = _json_body()
    if "type" in data:
        gpr_app.controls.set_poi_type(str(data["type"]))
    if "enabled" in data and bool(data["enabled"]) != gpr_app.controls.poi_mode:
        gpr_app.controls.toggle_poi_mode()
    return _state_response(figures=())


@app.route("/api/colorscale", methods=["POST"])
@with_app
def set_colorscale():
    colorscale = _json_body().get("colorscale")
    if not colorscale:
        return jsonify({"error": "Missing 'colorscale'"}), 400
    gpr_app.set_colorscale(str(colorscale))
    return _state_response(figures=SLICE_FIGURES)


# ═══════════════════════════════════════════════════════════════════════════
# 📍 POI ROUTES
# ═══════════════════════════════════════════════════════════════════════════


@app.route("/api/pois", methods=["GET"])
@with_app
def list_pois():
    return jsonify(gpr_app.pois_table())


@app.route("/api/pois/export", methods=["GET"])
@with_app
def export_pois():
    return Response(
        gpr_app.export_pois_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=pois_export.csv"},
    )


@app.route("/api/track/export", methods=["GET"])
@with_app
def export_track():
    return Response(
        gpr_app.export_track_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=track_export.csv"},
    )


@app.route("/api/pois/<int:index>", methods=["DELETE"])
@with_app
def delete_poi(index: int):
    """Out-of-range indices are a no-op, not an error."""
    gpr_app.delete_poi(index)
    return _state_response()


@app.route("/api/pois/<int:index>/navigate", methods=["POST"])
@with_app
def navigate_poi(index: int):
    gpr_app.navigate_to_poi(index)
    return _state_response()


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 SERVER INITIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def initialize_services(
    config: Optional[VizConfig] = None,
    provider: Optional[ApiClient] = None,
) -> bool:
    """
    Create the GprApp instance used by all routes.

    Returns:
        True if initialization successful, False otherwise.
    """
    global gpr_app

    config = config or VIZ_CONFIG
    try:
        logger.info(f"🚀 Initializing viewer (backend: {config.api.base_url})")
        gpr_app = GprApp(config, provider=provider)
        return True
    except (GprVizError, ValueError) as e:
        logger.error(f"❌ Failed to initialize services: {e}")
        return False


def main() -> None:
    """Main entry point - initialize and start server.

    Usage: gpr-viz [BACKEND_API_URL]
    """
    config = VIZ_CONFIG
    if len(sys.argv) > 1:
        config = dataclasses.replace(
            config, api=dataclasses.replace(config.api, base_url=sys.argv[1])
        )

    if not initialize_services(config):
        sys.exit(1)

    gpr_app.check_connection()

    host, port = config.server.host, config.server.port
    logger.info(f"🌐 Starting server at http://{host}:{port}")
    logger.info(f"   Open browser to: http://{host}:{port}")
    app.run(host=host, port=port, debug=False)


if __name__ == "__main__":
    main()
