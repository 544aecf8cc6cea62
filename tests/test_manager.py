"""Tests for PanelService: bootstrap payload and applying changes."""

import pytest

from conftest import PANEL, FailingBackend
from optionskit.errors import NotFound, PersistenceFailed, ValidationFailed
from optionskit.registry import LABELS, SANITIZE_SETTINGS


class TestBootstrapPayload:
    def test_panel_without_contributions_is_empty(self, make_service):
        payload = make_service().get_bootstrap_payload("never-declared", "whatever")

        assert payload == {
            "title": "",
            "actionButtons": [],
            "labels": {"save": "Save Changes"},
            "tabs": [],
            "sections": {},
            "settings": [],
            "activeTab": "",
            "values": {},
        }

    def test_payload_shape_for_declared_panel(self, service, panel):
        panel.add_action_button({"title": "Docs", "url": "https://example.com/docs"})

        payload = service.get_bootstrap_payload(PANEL)

        assert payload["title"] == "Demo Settings"
        assert payload["actionButtons"] == [{"title": "Docs", "url": "https://example.com/docs"}]
        assert payload["tabs"] == [
            {"id": "general", "title": "General"},
            {"id": "advanced", "title": "Advanced"},
        ]
        assert payload["sections"]["general"] == [
            {"id": "main", "title": "Main", "settings": ["site_name", "enabled"]},
            {"id": "display", "title": "Display", "settings": ["layout"]},
        ]
        assert [s["id"] for s in payload["settings"]] == ["site_name", "enabled", "layout", "retries"]
        assert payload["activeTab"] == "general"

    def test_values_fall_back_to_defaults(self, service):
        values = service.get_bootstrap_payload(PANEL)["values"]
        assert values == {"site_name": "My site", "enabled": False, "layout": "grid", "retries": 3}

    def test_stored_values_win_over_defaults(self, make_service, backend):
        backend.set("demo_panel_settings", {"layout": "list", "orphan": 1})

        payload = make_service().get_bootstrap_payload(PANEL)
        assert payload["values"]["layout"] == "list"
        assert "orphan" not in payload["values"]
        layout = next(s for s in payload["settings"] if s["id"] == "layout")
        assert layout["value"] == "list"
        assert layout["choices"] == [{"value": "grid", "label": "Grid"}, {"value": "list", "label": "List"}]

    def test_requested_tab_selects_active_tab(self, service):
        assert service.get_bootstrap_payload(PANEL, "advanced")["activeTab"] == "advanced"
        assert service.get_bootstrap_payload(PANEL, "nope")["activeTab"] == "general"

    def test_labels_can_be_overridden(self, service, registry):
        registry.add(LABELS, PANEL, lambda labels: {**labels, "save": "Apply"})
        assert service.get_bootstrap_payload(PANEL)["labels"] == {"save": "Apply"}

    def test_loading_publishes_values(self, service, published, backend):
        backend.set("demo_panel_settings", {"retries": 5})
        service.get_bootstrap_payload(PANEL)
        assert published["demo_panel_options"] == {"retries": 5}


class TestTabSections:
    def test_sections_of_known_tab(self, service):
        assert service.get_tab_sections(PANEL, "advanced") == [{"id": "main", "title": "Expert"}]

    def test_unknown_tab_is_not_found(self, service):
        with pytest.raises(NotFound):
            service.get_tab_sections(PANEL, "ghost")


class TestApplySettings:
    def test_unknown_setting_is_rejected_and_valid_one_persisted(self, service, backend):
        result = service.apply_settings(PANEL, {"site_name": "Hello", "bogus": 1})

        assert result["accepted"] == ["site_name"]
        assert result["rejected"] == {"bogus": "Unknown setting"}
        assert backend.writes == [("demo_panel_settings", {"site_name": "Hello"})]

    def test_round_trip_through_bootstrap_payload(self, make_service):
        make_service().apply_settings(PANEL, {"site_name": "v"})
        assert make_service().get_bootstrap_payload(PANEL)["values"]["site_name"] == "v"

    def test_same_service_sees_its_own_write(self, service):
        service.apply_settings(PANEL, {"retries": "7"})
        assert service.get_bootstrap_payload(PANEL)["values"]["retries"] == 7

    def test_invalid_values_are_collected_not_raised(self, service, backend):
        result = service.apply_settings(PANEL, {"layout": "carousel", "retries": 99})

        assert result["accepted"] == []
        assert set(result["rejected"]) == {"layout", "retries"}
        assert backend.writes == []

    def test_values_are_normalised_before_persisting(self, service, backend):
        result = service.apply_settings(PANEL, {"enabled": "yes", "retries": "4"})

        assert result["accepted"] == ["enabled", "retries"]
        assert result["values"]["enabled"] is True
        assert backend.get("demo_panel_settings") == {"enabled": True, "retries": 4}

    def test_existing_record_keys_are_preserved(self, make_service, backend):
        backend.set("demo_panel_settings", {"legacy": "keep me", "layout": "grid"})

        make_service().apply_settings(PANEL, {"layout": "list"})
        assert backend.get("demo_panel_settings") == {"legacy": "keep me", "layout": "list"}

    def test_unknown_panel_is_not_found(self, service, backend):
        with pytest.raises(NotFound):
            service.apply_settings("ghost", {"site_name": "x"})
        assert backend.writes == []

    def test_non_mapping_payload_fails_validation(self, service):
        with pytest.raises(ValidationFailed):
            service.apply_settings(PANEL, ["site_name", "x"])

    def test_store_failure_fails_the_whole_apply(self, make_service, published):
        service = make_service(FailingBackend())

        with pytest.raises(PersistenceFailed):
            service.apply_settings(PANEL, {"site_name": "a", "retries": 2})
        assert service.get_bootstrap_payload(PANEL)["values"]["site_name"] == "My site"
        assert published["demo_panel_options"] == {}

    def test_change_hooks_fire_only_for_changed_values(self, service, registry):
        seen = []
        registry.register_change_hook(PANEL, "layout", lambda old, new: seen.append(("layout", old, new)))
        registry.register_change_hook(PANEL, "retries", lambda old, new: seen.append(("retries", old, new)))

        service.apply_settings(PANEL, {"layout": "list", "retries": 3})
        assert seen == [("layout", "grid", "list")]

    def test_sanitize_extension_point_transforms_accepted_values(self, service, registry, backend):
        def upper_site_name(changes):
            if "site_name" in changes:
                changes["site_name"] = changes["site_name"].upper()
            changes.pop("enabled", None)
            changes["not_a_setting"] = 1
            return changes

        registry.add(SANITIZE_SETTINGS, PANEL, upper_site_name)
        result = service.apply_settings(PANEL, {"site_name": "shout", "enabled": True})

        assert result["accepted"] == ["site_name"]
        assert result["rejected"] == {"enabled": "Rejected by sanitize"}
        assert backend.get("demo_panel_settings") == {"site_name": "SHOUT"}

    def test_concurrent_sessions_are_last_writer_wins(self, make_service, backend):
        first = make_service()
        second = make_service()
        first.get_bootstrap_payload(PANEL)
        second.get_bootstrap_payload(PANEL)

        first.apply_settings(PANEL, {"site_name": "from first"})
        second.apply_settings(PANEL, {"layout": "list"})

        stored = backend.get("demo_panel_settings")
        assert stored == {"layout": "list"}
        assert make_service().get_bootstrap_payload(PANEL)["values"]["site_name"] == "My site"
