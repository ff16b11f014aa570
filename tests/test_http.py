import httpx
import pytest

import sondealert.core.http as http
from sondealert.core.errors import UpstreamError


def _patch_transport(monkeypatch, handler):
    real_client = httpx.Client

    def client_factory(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(http.httpx, "Client", client_factory)


def test_get_json_returns_decoded_body_and_sends_user_agent(monkeypatch):
    seen = {}

    def handler(request):
        seen["ua"] = request.headers["User-Agent"]
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"ok": True})

    _patch_transport(monkeypatch, handler)
    assert http.get_json("https://example.test/x", headers={"Authorization": "Bearer t"}) == {"ok": True}
    assert seen == {"ua": http.DEFAULT_USER_AGENT, "auth": "Bearer t"}


@pytest.mark.parametrize("status", [301, 401, 404, 500])
def test_get_json_raises_upstream_error_on_non_success(monkeypatch, status):
    _patch_transport(monkeypatch, lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(UpstreamError) as excinfo:
        http.get_json("https://example.test/x")
    assert excinfo.value.status_code == status


def test_get_json_raises_upstream_error_on_invalid_json(monkeypatch):
    _patch_transport(monkeypatch, lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(UpstreamError):
        http.get_json("https://example.test/x")


def test_timeouts_are_upstream_errors(monkeypatch):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    _patch_transport(monkeypatch, handler)
    with pytest.raises(UpstreamError):
        http.post_json("https://example.test/x", payload={"a": 1})


def test_post_json_sends_json_and_allows_empty_body(monkeypatch):
    seen = {}

    def handler(request):
        seen["body"] = request.content
        seen["type"] = request.headers["Content-Type"]
        return httpx.Response(200)

    _patch_transport(monkeypatch, handler)
    assert http.post_json("https://example.test/x", payload={"a": 1}) is None
    assert seen["type"] == "application/json"
    assert b'"a"' in seen["body"]
