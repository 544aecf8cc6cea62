import json

import pytest

from optionskit.bootstrap import build_client_settings, render_bootstrap_script


def test_client_settings_add_rest_url_and_nonce():
    settings = build_client_settings({"title": "T"}, "http://host/optionskit/v1/", "abc")
    assert settings == {"title": "T", "restUrl": "http://host/optionskit/v1/", "nonce": "abc"}


def test_script_defines_named_global():
    script = str(render_bootstrap_script({"title": "Settings", "tabs": []}))

    assert script.startswith("<script>var optionsKitSettings = ")
    assert script.endswith(";</script>")
    body = script[len("<script>var optionsKitSettings = "):-len(";</script>")]
    assert json.loads(body) == {"title": "Settings", "tabs": []}


def test_script_escapes_markup_in_values():
    script = str(render_bootstrap_script({"title": "</script><script>alert(1)</script>"}))

    assert script.count("</script>") == 1
    assert "\\u003c/script\\u003e" in script


def test_custom_global_name_must_be_identifier():
    assert "var mySettings = " in str(render_bootstrap_script({}, "mySettings"))
    with pytest.raises(ValueError):
        render_bootstrap_script({}, "window.x; alert(1)")
