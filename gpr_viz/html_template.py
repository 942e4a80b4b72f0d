"""
HTML template generator for the GPR track viewer page.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Generate the single page served at "/": sidebar (query form,
tools, POI list, cursor/track info), two slice panels, and the map panel.

The page holds no domain state. It draws the Plotly figures the server
sends and forwards pointer, relayout, toolbar and keyboard events to the
/api routes; every response carries the new page state plus whichever
figures changed.

Key Features:
- Plotly.js from CDN (heatmaps + MapLibre-based scattermap)
- Relayout events raised while applying server figures are not forwarded
- Frontend config embedded as window.GPR_CONFIG

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import json
from typing import Any, Dict, Optional

from gpr_viz.models import POI_TYPES
from gpr_viz.viz_config_types import VizConfig

PLOTLY_CDN = "https://cdn.plot.ly/plotly-2.35.2.min.js"

COLORSCALES = ("RdBu", "Greys", "Viridis", "Jet", "Hot", "Electric")

# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 STYLES
# ═══════════════════════════════════════════════════════════════════════════════

PAGE_CSS = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
    background: #0a0a0a; color: #e2e8f0; height: 100vh; overflow: hidden;
}
.layout { display: grid; grid-template-columns: 300px 1fr; height: 100vh; }
.sidebar { background: #1a202c; padding: 12px; overflow-y: auto; font-size: 12px; }
.sidebar h3 {
    font-size: 13px; margin: 12px 0 6px; color: #a0aec0;
    text-transform: uppercase; letter-spacing: 0.5px;
}
.sidebar input, .sidebar select {
    width: 100%; margin-bottom: 4px; padding: 4px;
    background: #2d3748; color: #e2e8f0; border: 1px solid #4a5568; border-radius: 4px;
}
.sidebar button {
    margin: 2px 2px 2px 0; padding: 4px 8px; background: #3182ce; color: #fff;
    border: none; border-radius: 4px; cursor: pointer; font-size: 12px;
}
.sidebar button.active { background: #e53e3e; }
.stat-row { display: flex; justify-content: space-between; padding: 2px 0; }
.stat-row span:first-child { color: #a0aec0; }
.main { display: grid; grid-template-rows: 1fr 1fr 1fr; height: 100vh; }
.panel { position: relative; border-bottom: 1px solid #2d3748; }
.panel .title {
    position: absolute; top: 4px; left: 70px; z-index: 10; font-size: 11px; color: #a0aec0;
}
.plot { width: 100%; height: 100%; }
.poi-item {
    display: flex; align-items: center; gap: 6px; padding: 3px 0;
    border-bottom: 1px solid #2d3748; cursor: pointer;
}
.poi-dot { width: 10px; height: 10px; border-radius: 50%; }
.poi-item .label { flex: 1; }
#status { margin-top: 8px; padding: 6px; background: #2d3748; border-radius: 4px; }
#loading { display: none; color: #f6ad55; }
"""

# ═══════════════════════════════════════════════════════════════════════════════
# 📜 PAGE SCRIPT
# ═══════════════════════════════════════════════════════════════════════════════

APP_JS = """
const PLOT_IDS = { viewer1: 'viewer1', viewer2: 'viewer2', map: 'map' };
let applying = false;

async function api(method, url, body) {
    const options = { method: method, headers: { 'Content-Type': 'application/json' } };
    if (body !== undefined) options.body = JSON.stringify(body);
    const response = await fetch(url, options);
    const payload = await response.json();
    if (!response.ok) {
        setText('status', payload.error || ('HTTP ' + response.status));
        return null;
    }
    applyResponse(payload);
    return payload;
}

function applyResponse(payload) {
    if (!payload) return;
    applying = true;
    try {
        const figures = payload.figures || {};
        for (const name of Object.keys(figures)) {
            const fig = figures[name];
            Plotly.react(PLOT_IDS[name], fig.data, fig.layout, { responsive: true, displaylogo: false });
        }
    } finally {
        applying = false;
    }
    if (payload.state) renderState(payload.state);
}

function setText(id, text) {
    const el = document.getElementById(id);
    if (el) el.textContent = text;
}

function renderState(state) {
    setText('status', state.status);
    setText('connection', state.connection_status);
    setText('zoom', state.zoom);
    setText('map-cursor', state.map_cursor);
    document.getElementById('loading').style.display = state.loading ? 'block' : 'none';
    for (const [key, value] of Object.entries(state.cursor_info || {})) setText('cursor-' + key, value);
    for (const key of ['points', 'distance', 'start', 'end']) setText('track-' + key, (state.track_info || {})[key] || '--');
    for (const [name, text] of Object.entries(state.viewer_info || {})) setText(name + '-info', text);
    document.getElementById('poi-mode').classList.toggle('active', state.poi_mode);
    document.getElementById('sync').textContent = state.sync_enabled ? 'Sync: On' : 'Sync: Off';
    document.getElementById('active-viewer').value = state.active_viewer;
    renderPois(state.pois || []);
}

function renderPois(pois) {
    const list = document.getElementById('poi-list');
    list.innerHTML = '';
    for (const poi of pois) {
        const item = document.createElement('div');
        item.className = 'poi-item';
        const dot = document.createElement('span');
        dot.className = 'poi-dot';
        dot.style.background = poi.color;
        const label = document.createElement('span');
        label.className = 'label';
        const mile = poi.mile_marker === null ? '--' : poi.mile_marker.toFixed(2);
        label.textContent = poi.label + ' (mile ' + mile + ')';
        label.onclick = () => api('POST', '/api/pois/' + poi.index + '/navigate');
        const remove = document.createElement('button');
        remove.textContent = 'x';
        remove.onclick = () => api('DELETE', '/api/pois/' + poi.index);
        item.append(dot, label, remove);
        list.appendChild(item);
    }
}

function bindSlice(n) {
    const el = document.getElementById('viewer' + n);
    el.on('plotly_hover', (event) => {
        const p = event.points[0];
        api('POST', '/api/slice/' + n + '/hover', { x: p.x, y: p.y, z: p.z });
    });
    el.on('plotly_click', (event) => {
        const p = event.points[0];
        api('POST', '/api/slice/' + n + '/click', { x: p.x, y: p.y, z: p.z });
    });
    el.on('plotly_relayout', (event) => {
        if (applying) return;
        api('POST', '/api/slice/' + n + '/relayout', event);
    });
}

function bindMap() {
    const el = document.getElementById('map');
    el.on('plotly_click', (event) => {
        const p = event.points[0];
        api('POST', '/api/map/click', { lat: p.lat, lon: p.lon });
    });
    el.on('plotly_hover', (event) => {
        const p = event.points[0];
        api('POST', '/api/map/hover', { lat: p.lat, lon: p.lon });
    });
}

function queryForm() {
    const value = (id) => document.getElementById(id).value;
    return {
        date: value('date'),
        start_lat: value('start-lat'), start_lon: value('start-lon'),
        end_lat: value('end-lat'), end_lon: value('end-lon'),
    };
}

document.addEventListener('keydown', (event) => {
    if (event.target.tagName === 'INPUT' || event.target.tagName === 'SELECT') return;
    const handled = ['+', '=', '-', '0', 'ArrowLeft', 'ArrowRight'].includes(event.key)
        || ((event.ctrlKey || event.metaKey) && event.key === 's');
    if (!handled) return;
    event.preventDefault();
    api('POST', '/api/controls/key', { key: event.key, ctrl: event.ctrlKey || event.metaKey });
});

window.addEventListener('load', async () => {
    await api('GET', '/api/state');
    bindSlice(1);
    bindSlice(2);
    bindMap();
    api('GET', '/api/health');
});
"""


# ═══════════════════════════════════════════════════════════════════════════════
# 📄 TEMPLATE GENERATION
# ═══════════════════════════════════════════════════════════════════════════════


def generate_html(
    config: VizConfig,
    frontend_config: Optional[Dict[str, Any]] = None,
    title: str = "GPR Track Viewer",
) -> str:
    """
    Generate the complete viewer page.

    Args:
        config: Visualization configuration (query defaults, colours)
        frontend_config: JSON-ready config embedded as window.GPR_CONFIG;
            defaults to config.to_frontend_dict()
        title: Page title

    Returns:
        Complete HTML string
    """
    frontend_config = frontend_config or config.to_frontend_dict()
    config_json = json.dumps(frontend_config, separators=(",", ":"))
    mock = config.mock

    poi_options = "".join(
        f'<option value="{t}">{t.capitalize()}</option>' for t in POI_TYPES
    )
    colorscale_options = "".join(
        f'<option value="{c}"{" selected" if c == config.slice.colorscale else ""}>{c}</option>'
        for c in COLORSCALES
    )

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <script src="{PLOTLY_CDN}"></script>
    <style>{PAGE_CSS}</style>
</head>
<body>
<div class="layout">
    <div class="sidebar">
        <h2>{title}</h2>
        <div id="connection">● Demo Mode</div>

        <h3>Query</h3>
        <input id="date" type="date" value="{mock.date}">
        <input id="start-lat" type="number" step="any" value="{mock.start_lat}" placeholder="Start lat">
        <input id="start-lon" type="number" step="any" value="{mock.start_lon}" placeholder="Start lon">
        <input id="end-lat" type="number" step="any" value="{mock.end_lat}" placeholder="End lat">
        <input id="end-lon" type="number" step="any" value="{mock.end_lon}" placeholder="End lon">
        <button onclick="api('POST', '/api/query', queryForm())">Load Data</button>
        <button onclick="api('POST', '/api/sample')">Load Sample Data</button>
        <div id="loading">Loading...</div>

        <h3>View</h3>
        <select id="active-viewer" onchange="api('POST', '/api/active-viewer', {{viewer: this.value}})">
            <option value="both">Both viewers</option>
            <option value="viewer1">Viewer 1</option>
            <option value="viewer2">Viewer 2</option>
        </select>
        <button onclick="api('POST', '/api/controls/zoom_in')">Zoom +</button>
        <button onclick="api('POST', '/api/controls/zoom_out')">Zoom -</button>
        <button onclick="api('POST', '/api/controls/reset')">Reset</button>
        <button onclick="api('POST', '/api/controls/seek_left')">&larr;</button>
        <button onclick="api('POST', '/api/controls/seek_right')">&rarr;</button>
        <button id="sync" onclick="api('POST', '/api/controls/toggle_sync')">Sync: On</button>
        <div class="stat-row"><span>Zoom</span><span id="zoom">100%</span></div>
        <select id="colorscale" onchange="api('POST', '/api/colorscale', {{colorscale: this.value}})">
            {colorscale_options}
        </select>

        <h3>Map</h3>
        <button onclick="api('POST', '/api/map/fit')">Fit Track</button>
        <button onclick="api('POST', '/api/map/markers')">Mile Markers</button>
        <div class="stat-row"><span>Cursor</span><span id="map-cursor"></span></div>

        <h3>POIs</h3>
        <select id="poi-type" onchange="api('POST', '/api/poi-mode', {{type: this.value}})">
            {poi_options}
        </select>
        <button id="poi-mode" onclick="api('POST', '/api/controls/toggle_poi_mode')">Add POI</button>
        <a href="/api/pois/export"><button>Export CSV</button></a>
        <div id="poi-list"></div>

        <h3>Cursor</h3>
        <div class="stat-row"><span>Position</span><span id="cursor-position">--</span></div>
        <div class="stat-row"><span>Intensity</span><span id="cursor-intensity">--</span></div>
        <div class="stat-row"><span>Lat</span><span id="cursor-lat">--</span></div>
        <div class="stat-row"><span>Lon</span><span id="cursor-lon">--</span></div>
        <div class="stat-row"><span>Depth</span><span id="cursor-depth">--</span></div>
        <div class="stat-row"><span>Mile</span><span id="cursor-mile">--</span></div>

        <h3>Track</h3>
        <div class="stat-row"><span>Points</span><span id="track-points">--</span></div>
        <div class="stat-row"><span>Distance</span><span id="track-distance">--</span></div>
        <div class="stat-row"><span>Start</span><span id="track-start">--</span></div>
        <div class="stat-row"><span>End</span><span id="track-end">--</span></div>

        <div id="status"></div>
    </div>
    <div class="main">
        <div class="panel">
            <div class="title">Viewer 1 | <span id="viewer1-info">No data</span></div>
            <div id="viewer1" class="plot"></div>
        </div>
        <div class="panel">
            <div class="title">Viewer 2 | <span id="viewer2-info">No data</span></div>
            <div id="viewer2" class="plot"></div>
        </div>
        <div class="panel">
            <div id="map" class="plot"></div>
        </div>
    </div>
</div>
<script>
window.GPR_CONFIG = {config_json};
{APP_JS}
</script>
</body>
</html>"""

    return html
