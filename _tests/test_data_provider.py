"""
Tests for the backend API client, using a fake requests session.

Run with: python -m pytest _tests/test_data_provider.py -v
"""

from typing import Any, Dict, List, Optional

import pytest
import requests

from gpr_viz.data_provider import ApiClient, build_query
from gpr_viz.models import DataProviderError, GeoBounds, Poi, SliceDataset
from gpr_viz.viz_config_types import ApiConfig

from conftest import make_poi, make_track


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, bad_json: bool = False):
        self.status_code = status_code
        self._body = body
        self._bad_json = bad_json

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._bad_json:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeSession:
    """Records requests and replays queued responses."""

    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.headers: Dict[str, str] = {}
        self.responses = list(responses or [])
        self.requests: List[Dict[str, Any]] = []

    def _next(self):
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def request(self, method, url, params=None, json=None, timeout=None):
        self.requests.append(
            {"method": method, "url": url, "params": params, "json": json, "timeout": timeout}
        )
        return self._next()

    def get(self, url, timeout=None):
        self.requests.append({"method": "GET", "url": url, "timeout": timeout})
        return self._next()


SLICE_BODY = {
    "date": "2025-06-15",
    "start_lat": 43.0,
    "start_lon": -81.0,
    "end_lat": 43.01,
    "end_lon": -80.99,
    "width": 3,
    "height": 2,
    "data": [[0, 128, 255], [10, 20, 30]],
    "metadata": {"depth_range_m": [0, 8]},
}


def _client(*responses) -> ApiClient:
    config = ApiConfig(base_url="http://backend/api/", health_url="http://backend/health")
    return ApiClient(config, session=FakeSession(list(responses)))


class TestBuildQuery:
    def test_drops_none(self):
        assert build_query({"a": 1, "b": None, "c": 0}) == {"a": 1, "c": 0}


class TestGprEndpoints:
    def test_fetch_slice(self):
        client = _client(FakeResponse(body=SLICE_BODY))

        dataset = client.fetch_slice("2025-06-15", 43.0, -81.0, 43.01, -80.99)

        assert isinstance(dataset, SliceDataset)
        assert (dataset.width, dataset.height) == (3, 2)
        assert dataset.bounds.depth_range_m == (0.0, 8.0)
        sent = client.session.requests[0]
        assert sent["url"] == "http://backend/api/gpr/slice"
        assert sent["params"]["zoom_level"] == 1
        assert sent["timeout"] == client.config.timeout_s

    def test_fetch_bounds(self):
        client = _client(FakeResponse(body=SLICE_BODY))
        assert isinstance(client.fetch_bounds("2025-06-15"), GeoBounds)

    def test_fetch_dates_accepts_list_or_dict(self):
        client = _client(
            FakeResponse(body=["2025-06-15"]),
            FakeResponse(body={"dates": ["2025-06-16"]}),
        )
        assert client.fetch_available_dates() == ["2025-06-15"]
        assert client.fetch_available_dates() == ["2025-06-16"]

    def test_ragged_grid_becomes_provider_error(self):
        body = {**SLICE_BODY, "data": [[1, 2, 3], [4, 5]]}
        client = _client(FakeResponse(body=body))
        with pytest.raises(DataProviderError, match="Malformed response"):
            client.fetch_slice("2025-06-15", 43.0, -81.0, 43.01, -80.99)

    def test_duplicate_bundled_poi_ids_become_provider_error(self):
        poi = make_poi("poi-3").as_dict()
        body = {**SLICE_BODY, "pois": [poi, dict(poi, label="again")]}
        client = _client(FakeResponse(body=body))
        with pytest.raises(DataProviderError, match="Malformed response.*poi-3"):
            client.fetch_slice("2025-06-15", 43.0, -81.0, 43.01, -80.99)


class TestGpsEndpoints:
    def test_fetch_track_drops_none_filters(self):
        points = [p.as_dict() for p in make_track(n=4)]
        client = _client(FakeResponse(body={"points": points}))

        track = client.fetch_track("2025-06-15", start_lat=43.0, end_lat=None)

        assert [p.index for p in track] == [0, 1, 2, 3]
        assert client.session.requests[0]["params"] == {"date": "2025-06-15", "start_lat": 43.0}

    def test_fetch_track_accepts_bare_list(self):
        points = [p.as_dict() for p in make_track(n=2)]
        client = _client(FakeResponse(body=points))
        assert len(client.fetch_track("2025-06-15")) == 2

    def test_location_at_time(self):
        point = make_track(n=1)[0].as_dict()
        client = _client(FakeResponse(body=point))
        located = client.fetch_location_at_time("2025-06-15", "08:00:00")
        assert located.lat == point["lat"]


class TestPoiEndpoints:
    def test_create_sends_wire_dict(self):
        client = _client(FakeResponse(body={"id": "poi-101"}))
        poi = make_poi("poi-101")
        client.create_poi(poi)
        sent = client.session.requests[0]
        assert sent["method"] == "POST"
        assert sent["url"].endswith("/poi/")
        assert sent["json"] == poi.as_dict()

    def test_list_and_get(self):
        poi = make_poi("poi-7").as_dict()
        client = _client(FakeResponse(body=[poi]), FakeResponse(body=poi))
        assert [p.id for p in client.list_pois()] == ["poi-7"]
        assert isinstance(client.get_poi("poi-7"), Poi)

    def test_list_without_ids_becomes_provider_error(self):
        client = _client(FakeResponse(body={"pois": [{"label": "no id"}]}))
        with pytest.raises(DataProviderError, match="Malformed response from /poi/"):
            client.list_pois()

    def test_list_of_non_objects_becomes_provider_error(self):
        client = _client(FakeResponse(body=["oops"]))
        with pytest.raises(DataProviderError, match="Malformed response"):
            client.list_pois()

    def test_get_empty_body_becomes_provider_error(self):
        client = _client(FakeResponse(body={}))
        with pytest.raises(DataProviderError, match="Malformed response from /poi/poi-7"):
            client.get_poi("poi-7")

    def test_delete_and_update(self):
        client = _client(FakeResponse(body={"ok": True}), FakeResponse(body={"ok": True}))
        client.update_poi("poi-7", {"notes": "checked"})
        client.delete_poi("poi-7")
        methods = [r["method"] for r in client.session.requests]
        assert methods == ["PUT", "DELETE"]

    def test_poi_types(self):
        client = _client(FakeResponse(body={"types": ["culvert", "pipe"]}))
        assert client.list_poi_types() == ["culvert", "pipe"]


class TestErrors:
    def test_http_error_uses_detail(self):
        client = _client(FakeResponse(status_code=404, body={"detail": "No data for date"}))
        with pytest.raises(DataProviderError, match="No data for date") as exc_info:
            client.fetch_bounds("1999-01-01")
        assert exc_info.value.status_code == 404

    def test_http_error_without_detail(self):
        client = _client(FakeResponse(status_code=500, bad_json=True))
        with pytest.raises(DataProviderError, match="HTTP error 500"):
            client.fetch_available_dates()

    def test_connection_error_wrapped(self):
        client = _client(requests.ConnectionError("refused"))
        with pytest.raises(DataProviderError):
            client.fetch_available_dates()

    def test_invalid_json(self):
        client = _client(FakeResponse(body=None, bad_json=True))
        with pytest.raises(DataProviderError, match="Invalid JSON"):
            client.fetch_available_dates()


class TestHealthCheck:
    def test_healthy(self):
        client = _client(FakeResponse(status_code=200, body={"status": "ok"}))
        assert client.health_check() is True
        assert client.session.requests[0]["url"] == "http://backend/health"

    def test_unhealthy_status(self):
        assert _client(FakeResponse(status_code=503)).health_check() is False

    def test_never_raises(self):
        assert _client(requests.Timeout("slow")).health_check() is False
