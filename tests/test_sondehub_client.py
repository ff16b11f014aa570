import pytest

from sondealert.core.errors import UpstreamError
from sondealert.core.geo import Coordinate
from sondealert.ingestion.sondehub_client import SondeHubClient


def test_nearby_landings_builds_query_and_parses_entries(monkeypatch, settings):
    seen = {}

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        seen["url"] = url
        seen["params"] = params
        return {
            "X1": {"lat": 40.05, "lon": -74.05, "alt": 1200.4, "datetime": "2025-06-01T12:00:00Z"},
            "X2": {"lat": "40.1", "lon": "-74.1", "datetime": None},
        }

    monkeypatch.setattr("sondealert.ingestion.sondehub_client.get_json", fake_get_json)

    landings = SondeHubClient(settings).nearby_landings(Coordinate(40.0, -74.0), 12.5)

    assert seen["url"] == "https://api.v2.sondehub.org/sondes"
    assert seen["params"] == {
        "frame_types": "landing",
        "lat": "40.000000",
        "lon": "-74.000000",
        "distance": 12500,
    }
    assert set(landings) == {"X1", "X2"}
    assert landings["X1"].location == Coordinate(40.05, -74.05)
    assert landings["X1"].altitude == 1200.4
    assert landings["X1"].observed_at == "2025-06-01T12:00:00Z"
    assert landings["X2"].altitude == 0.0
    assert landings["X2"].observed_at is None


def test_nearby_landings_empty_response_is_not_an_error(monkeypatch, settings):
    monkeypatch.setattr("sondealert.ingestion.sondehub_client.get_json", lambda *_a, **_k: {})
    assert SondeHubClient(settings).nearby_landings(Coordinate(40.0, -74.0), 50) == {}


def test_nearby_landings_drops_entries_without_position(monkeypatch, settings):
    payload = {
        "GOOD": {"lat": 1.0, "lon": 2.0, "datetime": "2025-06-01T12:00:00Z"},
        "NOLAT": {"lon": 2.0},
        "BADLON": {"lat": 1.0, "lon": "east"},
        "SCALAR": 42,
    }
    monkeypatch.setattr("sondealert.ingestion.sondehub_client.get_json", lambda *_a, **_k: payload)
    assert list(SondeHubClient(settings).nearby_landings(Coordinate(0, 0), 50)) == ["GOOD"]


def test_nearby_landings_rejects_non_object_body(monkeypatch, settings):
    monkeypatch.setattr("sondealert.ingestion.sondehub_client.get_json", lambda *_a, **_k: [])
    with pytest.raises(UpstreamError):
        SondeHubClient(settings).nearby_landings(Coordinate(0, 0), 50)
