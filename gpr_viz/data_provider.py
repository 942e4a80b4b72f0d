#!/usr/bin/env python3
"""
Data Provider - GPR/GPS Backend API Client

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: All communication with the remote GPR/GPS backend.
Transport details stay here; callers receive typed models or a
DataProviderError.

Key Features:
1. GPR endpoints: available dates, slice, bounds
2. GPS endpoints: track, location at time
3. POI endpoints: create / list / get / update / delete, type list
4. Health check that never raises

Error Contract:
- Connection errors, timeouts, non-2xx responses and undecodable JSON are
  all raised as DataProviderError (the backend "detail" message is used
  when present)
- health_check() returns False instead of raising

Navigation Guide:
- ApiClient: transport + endpoint methods
- build_query: drops None-valued parameters

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from gpr_viz.models import (
    DataProviderError,
    GeoBounds,
    GpsTrack,
    Poi,
    SliceDataset,
    TrackPoint,
    track_from_list,
)
from gpr_viz.viz_config_types import ApiConfig

logger = logging.getLogger(__name__)


def build_query(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None-valued parameters so they never reach the query string."""
    return {key: value for key, value in params.items() if value is not None}


# ═══════════════════════════════════════════════════════════════════════════
# 🌐 API CLIENT
# ═══════════════════════════════════════════════════════════════════════════


class ApiClient:
    """
    Thin typed client over the backend REST API.

    The session is injectable so tests can substitute a fake transport.
    """

    def __init__(
        self,
        config: Optional[ApiConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or ApiConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # --- Transport ---

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method,
                url,
                params=build_query(params or {}),
                json=payload,
                timeout=self.config.timeout_s,
            )
        except requests.RequestException as e:
            logger.error(f"API Error ({endpoint}): {e}")
            raise DataProviderError(f"Request to {endpoint} failed: {e}") from e

        if not response.ok:
            detail = _error_detail(response)
            logger.error(f"API Error ({endpoint}): {detail}")
            raise DataProviderError(detail, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise DataProviderError(f"Invalid JSON from {endpoint}") from e

    # --- GPR ---

    def fetch_available_dates(self) -> List[str]:
        """Dates with GPR data, in backend order."""
        data = self._request("GET", "/gpr/dates")
        if isinstance(data, dict):
            data = data.get("dates", [])
        return [str(d) for d in data]

    def fetch_slice(
        self,
        date: str,
        start_lat: float,
        start_lon: float,
        end_lat: float,
        end_lon: float,
        zoom_level: int = 1,
    ) -> SliceDataset:
        """Fetch a GPR slice between two corners."""
        data = self._request(
            "GET",
            "/gpr/slice",
            params={
                "date": date,
                "start_lat": start_lat,
                "start_lon": start_lon,
                "end_lat": end_lat,
                "end_lon": end_lon,
                "zoom_level": zoom_level,
            },
        )
        return _parse(SliceDataset.from_dict, data, "/gpr/slice")

    def fetch_bounds(self, date: str) -> GeoBounds:
        data = self._request("GET", "/gpr/bounds", params={"date": date})
        return _parse(GeoBounds.from_dict, data, "/gpr/bounds")

    # --- GPS ---

    def fetch_track(self, date: str, **filters: Any) -> GpsTrack:
        """Fetch the GPS track for date, optionally filtered spatially."""
        data = self._request("GET", "/gps/track", params={"date": date, **filters})
        points = data.get("points", []) if isinstance(data, dict) else data
        return _parse(track_from_list, points, "/gps/track")

    def fetch_location_at_time(self, date: str, time: str) -> TrackPoint:
        data = self._request(
            "GET", "/gps/location-at-time", params={"date": date, "time": time}
        )
        return _parse(TrackPoint.from_dict, data, "/gps/location-at-time")

    # --- POI ---

    def create_poi(self, poi: Poi) -> Dict[str, Any]:
        return self._request("POST", "/poi/", payload=poi.as_dict())

    def list_pois(self, **filters: Any) -> List[Poi]:
        data = self._request("GET", "/poi/", params=filters)
        return _parse(_pois_from_list, data, "/poi/")

    def get_poi(self, poi_id: str) -> Poi:
        endpoint = f"/poi/{poi_id}"
        return _parse(Poi.from_dict, self._request("GET", endpoint), endpoint)

    def update_poi(self, poi_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/poi/{poi_id}", payload=update)

    def delete_poi(self, poi_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/poi/{poi_id}")

    def list_poi_types(self) -> List[str]:
        data = self._request("GET", "/poi/types/list")
        if isinstance(data, dict):
            data = data.get("types", [])
        return [str(t) for t in data]

    # --- Health ---

    def health_check(self) -> bool:
        """True when the backend health endpoint answers 2xx."""
        try:
            response = self.session.get(
                self.config.health_url, timeout=self.config.timeout_s
            )
        except requests.RequestException:
            return False
        return response.ok


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP error {response.status_code}"


def _parse(factory, data: Any, endpoint: str):
    """Run a model factory, turning malformed payloads into DataProviderError."""
    try:
        return factory(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DataProviderError(f"Malformed response from {endpoint}: {e}") from e


def _pois_from_list(data: Any) -> List[Poi]:
    if isinstance(data, dict):
        data = data.get("pois", [])
    return [Poi.from_dict(p) for p in data]
