import types

import pytest
import requests

import location_api as la
from errors import UpstreamError

class FakeResponse:
    def __init__(self, json_data, status_code=200):
        self._json = json_data
        self.status_code = status_code

    def json(self):
        return self._json

def stub(monkeypatch, response, calls=None):
    calls = calls if calls is not None else []
    def _get(url, params=None, timeout=30, **kwargs):
        calls.append({"url": url, "params": dict(params or {})})
        return response
    monkeypatch.setattr(la, "requests", types.SimpleNamespace(get=_get, RequestException=requests.RequestException))
    return calls

def test_geocode_returns_coordinates(monkeypatch):
    calls = stub(monkeypatch, FakeResponse({
        "status": "OK",
        "results": [{"formatted_address": "Paris, France", "geometry": {"location": {"lat": 48.85, "lng": 2.35}}}],
    }))
    out = la.geocode("Paris", api_key="k")
    assert out == {"lat": 48.85, "lng": 2.35, "formatted_address": "Paris, France"}
    assert calls[0]["params"] == {"address": "Paris", "key": "k"}

@pytest.mark.parametrize("status,kind", [
    ("ZERO_RESULTS", "not_found"),
    ("REQUEST_DENIED", "misconfigured"),
    ("OVER_QUERY_LIMIT", "degraded"),
    ("INVALID_REQUEST", "invalid_location"),
    ("UNKNOWN_ERROR", "transient"),
])
def test_geocode_status_kinds(monkeypatch, status, kind):
    stub(monkeypatch, FakeResponse({"status": status, "results": []}))
    with pytest.raises(UpstreamError) as exc:
        la.geocode("Nowhere", api_key="k")
    assert exc.value.kind == kind

def test_geocode_without_key(monkeypatch):
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    calls = stub(monkeypatch, FakeResponse({"status": "OK"}))
    with pytest.raises(UpstreamError) as exc:
        la.geocode("Paris")
    assert exc.value.kind == "misconfigured"
    assert calls == []

def test_search_videos(monkeypatch):
    calls = stub(monkeypatch, FakeResponse({"items": [
        {"id": {"videoId": "abc"}, "snippet": {"title": "Paris in 4K", "channelTitle": "Travel",
                                                "thumbnails": {"medium": {"url": "http://img/abc.jpg"}}}},
    ]}))
    videos = la.search_videos("Paris", api_key="k")
    assert videos == [{"video_id": "abc", "title": "Paris in 4K", "channel": "Travel", "thumbnail": "http://img/abc.jpg"}]
    assert calls[0]["params"]["q"] == "travel Paris tourism"
    assert calls[0]["params"]["maxResults"] == 4

def test_search_videos_quota_exceeded(monkeypatch):
    stub(monkeypatch, FakeResponse({"error": {"code": 403, "message": "quota", "errors": [{"reason": "quotaExceeded"}]}},
                                   status_code=403))
    with pytest.raises(UpstreamError) as exc:
        la.search_videos("Paris", api_key="k")
    assert exc.value.kind == "degraded"

def test_search_videos_bad_key(monkeypatch):
    stub(monkeypatch, FakeResponse({"error": {"code": 400, "message": "API key not valid", "errors": [{"reason": "badRequest"}]}},
                                   status_code=400))
    with pytest.raises(UpstreamError) as exc:
        la.search_videos("Paris", api_key="k")
    assert exc.value.kind == "misconfigured"
    assert exc.value.message == "API key not valid"
