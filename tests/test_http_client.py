"""Tests for the shared httpx client against the gateway, over a WSGI transport."""

import httpx
import pytest

from conftest import PANEL
from optionskit import http_client
from optionskit.errors import NotFound, Unauthorized


@pytest.fixture
def api(app):
    client = http_client.ensure_http_client(
        "http://testserver", "tests", transport=httpx.WSGITransport(app=app)
    )
    yield client
    http_client.close_http_client("tests")


def test_shared_client_is_reused(api, caplog):
    assert http_client.get_http_client() is api
    assert http_client.ensure_http_client("http://testserver/") is api
    assert "ignoring" not in caplog.text

    assert http_client.ensure_http_client("http://elsewhere") is api
    assert "ignoring http://elsewhere" in caplog.text


def test_module_is_exported_from_package():
    import optionskit

    assert optionskit.http_client is http_client


def test_close_resets_shared_client(app):
    first = http_client.ensure_http_client("http://testserver", transport=httpx.WSGITransport(app=app))
    http_client.close_http_client()
    second = http_client.ensure_http_client("http://testserver", transport=httpx.WSGITransport(app=app))
    try:
        assert first is not second
        assert first.is_closed
    finally:
        http_client.close_http_client()


def test_read_helpers(api):
    assert [tab["id"] for tab in http_client.fetch_tabs(PANEL)] == ["general", "advanced"]
    assert http_client.fetch_sections(PANEL, "advanced") == [{"id": "main", "title": "Expert"}]
    assert http_client.fetch_settings(PANEL, tab="advanced")["activeTab"] == "advanced"


def test_push_settings_round_trip(api):
    nonce = http_client.fetch_settings(PANEL)["nonce"]

    result = http_client.push_settings(PANEL, {"retries": 9, "layout": "tiles"}, nonce)
    assert result["accepted"] == ["retries"]
    assert "layout" in result["rejected"]
    assert http_client.fetch_settings(PANEL)["values"]["retries"] == 9


def test_errors_are_raised_as_domain_exceptions(api):
    with pytest.raises(NotFound):
        http_client.fetch_sections(PANEL, "ghost")
    with pytest.raises(Unauthorized):
        http_client.push_settings(PANEL, {"retries": 1}, "not-a-nonce")
