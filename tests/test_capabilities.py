"""Tests for the capability catalog, registry and tool prompt."""

import pytest

from pulseguard.capabilities.catalog import DEFAULT_CAPABILITIES, LOG_MEDICATION
from pulseguard.capabilities.prompt import build_capability_prompt, describe_capability
from pulseguard.capabilities.registry import CapabilityRegistry, build_default_registry
from pulseguard.capabilities.types import (
    CapabilityDefinition,
    Category,
    Sensitivity,
    UnknownCapabilityError,
)


class TestCatalog:
    def test_ids_are_unique(self):
        ids = [d.id for d in DEFAULT_CAPABILITIES]
        assert len(ids) == len(set(ids)) == 14

    def test_critical_capabilities_require_confirmation(self):
        for definition in DEFAULT_CAPABILITIES:
            if definition.sensitivity == Sensitivity.CRITICAL:
                assert definition.requires_confirmation, definition.id

    def test_free_text_capabilities_take_text(self):
        free_text = [d for d in DEFAULT_CAPABILITIES if d.free_text]
        assert {d.id for d in free_text} == {
            "schedule_reminder",
            "log_doctor_visit_outcome",
            "parse_doctor_recommendation",
        }
        for definition in free_text:
            text = definition.parameter("text")
            assert text is not None and text.required

    def test_required_parameters(self):
        assert [p.name for p in LOG_MEDICATION.required_parameters] == ["medication_name"]


class TestCapabilityRegistry:
    @pytest.fixture
    def registry(self) -> CapabilityRegistry:
        return build_default_registry()

    def test_lookup(self, registry):
        assert registry.get("log_medication") is LOG_MEDICATION
        assert registry.find("nope") is None
        assert "update_mood" in registry
        assert registry.has("log_hydration")

    def test_get_unknown_raises(self, registry):
        with pytest.raises(UnknownCapabilityError) as exc_info:
            registry.get("launch_rocket")
        assert str(exc_info.value) == "Unknown capability: launch_rocket"

    def test_duplicate_registration_raises(self, registry):
        with pytest.raises(ValueError, match="already registered"):
            registry.register(LOG_MEDICATION)

    def test_filters(self, registry):
        read_only = registry.by_category(Category.READ_ONLY)
        assert [d.id for d in read_only] == ["get_today_summary"]
        critical = {d.id for d in registry.by_sensitivity("critical")}
        assert critical == {"create_care_log", "log_doctor_visit_outcome"}
        assert all(d.requires_confirmation for d in registry.requiring_confirmation())

    def test_iteration_preserves_catalog_order(self, registry):
        assert registry.ids == [d.id for d in DEFAULT_CAPABILITIES]
        assert len(registry) == len(DEFAULT_CAPABILITIES)

    def test_custom_registry(self):
        custom = CapabilityDefinition(
            id="log_steps",
            name="Log Steps",
            description="Log a step count",
            category=Category.HEALTH_LOGGING,
            sensitivity=Sensitivity.LOW,
            requires_confirmation=False,
        )
        registry = CapabilityRegistry([custom])
        assert registry.ids == ["log_steps"]


class TestCapabilityPrompt:
    def test_lists_every_capability(self):
        registry = build_default_registry()
        prompt = build_capability_prompt(registry, min_confidence=0.75)
        for definition in registry:
            assert f"({definition.id})" in prompt
        assert "at least 0.75" in prompt
        assert "[TOOL_CALL:" in prompt

    def test_marks_confirmation_and_critical(self):
        registry = build_default_registry()
        care_log = describe_capability(registry.get("create_care_log"))
        assert "[REQUIRES CONFIRMATION]" in care_log
        assert "[CRITICAL - VERIFY DETAILS]" in care_log
        mood = describe_capability(registry.get("update_mood"))
        assert "REQUIRES CONFIRMATION" not in mood
        assert "mood* (string: great|good|okay|poor|crisis)" in mood
