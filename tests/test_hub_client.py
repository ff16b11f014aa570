import pytest

from sondealert.core.errors import UpstreamError
from sondealert.core.geo import Coordinate
from sondealert.ingestion.hub_client import HubClient


def test_current_location_reads_state_attributes(monkeypatch, settings):
    calls = []

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):  # noqa: ARG001
        calls.append((url, headers, timeout_seconds))
        return {"entity_id": "person.trick", "attributes": {"latitude": 40.0, "longitude": -74}}

    monkeypatch.setattr("sondealert.ingestion.hub_client.get_json", fake_get_json)

    location = HubClient(settings).current_location()

    assert location == Coordinate(40.0, -74.0)
    url, headers, timeout = calls[0]
    assert url == "http://hub.test:8123/api/states/person.trick"
    assert headers["Authorization"] == "Bearer secret-token"
    assert timeout == 5


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"attributes": {}},
        {"attributes": {"latitude": 40.0}},
        {"attributes": {"latitude": "40.0", "longitude": -74.0}},
        {"attributes": {"latitude": True, "longitude": -74.0}},
        ["not", "an", "object"],
    ],
)
def test_current_location_rejects_missing_attributes(monkeypatch, settings, payload):
    monkeypatch.setattr("sondealert.ingestion.hub_client.get_json", lambda *_a, **_k: payload)
    with pytest.raises(UpstreamError):
        HubClient(settings).current_location()


def test_current_location_propagates_upstream_errors(monkeypatch, settings):
    def failing_get_json(url, **_kwargs):
        raise UpstreamError("unexpected status 401", url=url, status_code=401)

    monkeypatch.setattr("sondealert.ingestion.hub_client.get_json", failing_get_json)
    with pytest.raises(UpstreamError) as excinfo:
        HubClient(settings).current_location()
    assert excinfo.value.status_code == 401


def test_call_service_and_fire_event_post_to_hub_endpoints(monkeypatch, settings):
    posts = []

    def fake_post_json(url, *, payload, headers=None, timeout_seconds=15):  # noqa: ARG001
        posts.append((url, payload, headers["Authorization"]))
        return None

    monkeypatch.setattr("sondealert.ingestion.hub_client.post_json", fake_post_json)

    client = HubClient(settings)
    client.call_service("script/notify_a_person_on_all_devices", {"message": "hi"})
    client.fire_event("sonde_alert", {"sonde_id": "X1"})

    assert posts == [
        (
            "http://hub.test:8123/api/services/script/notify_a_person_on_all_devices",
            {"message": "hi"},
            "Bearer secret-token",
        ),
        ("http://hub.test:8123/api/events/sonde_alert", {"sonde_id": "X1"}, "Bearer secret-token"),
    ]
