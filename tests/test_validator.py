"""Tests for request schema validation and safety guardrails."""

import pytest

from pulseguard.capabilities.catalog import (
    CREATE_CARE_LOG,
    CREATE_CHECK_IN,
    LOG_BLOOD_PRESSURE,
    LOG_DOCTOR_VISIT,
    LOG_MEDICATION,
    SAVE_HEALTH_ENTRY,
    UPDATE_MOOD,
)
from pulseguard.capabilities.guardrails import (
    LOW_CONFIDENCE_REASON,
    MISSING_INTENT_REASON,
    UNCLEAR_INTENT_REASON,
    GuardrailEvaluator,
)
from pulseguard.capabilities.types import ActionRequest
from pulseguard.capabilities.validator import matches_type, validate_request
from pulseguard.config.models import GuardrailConfig


def _request(capability_id: str, confidence: float = 0.9, **parameters) -> ActionRequest:
    return ActionRequest(
        id="req-1",
        capability_id=capability_id,
        parameters=parameters,
        confidence=confidence,
    )


class TestMatchesType:
    def test_bool_is_not_a_number(self):
        assert matches_type(120, "number")
        assert matches_type(98.6, "number")
        assert not matches_type(True, "number")
        assert matches_type(True, "boolean")

    def test_containers(self):
        assert matches_type(["a"], "array")
        assert matches_type({"a": 1}, "object")
        assert not matches_type("a", "array")


class TestValidateRequest:
    def test_valid(self):
        result = validate_request(
            _request("log_medication", medication_name="Aspirin", dose="81mg"), LOG_MEDICATION
        )
        assert result.valid
        assert result.errors == []

    def test_missing_required(self):
        result = validate_request(_request("log_medication"), LOG_MEDICATION)
        assert not result
        assert result.errors == ["Missing required parameter: medication_name"]

    def test_null_required_counts_as_missing(self):
        result = validate_request(
            _request("log_medication", medication_name=None), LOG_MEDICATION
        )
        assert "Missing required parameter: medication_name" in result.errors

    def test_wrong_type(self):
        result = validate_request(
            _request("log_blood_pressure", systolic="120", diastolic=80), LOG_BLOOD_PRESSURE
        )
        assert result.errors == ["Parameter systolic must be of type number"]

    def test_enum(self):
        result = validate_request(_request("update_mood", mood="ecstatic"), UPDATE_MOOD)
        assert result.errors == [
            "Parameter mood must be one of: great, good, okay, poor, crisis"
        ]

    def test_unknown_parameter(self):
        result = validate_request(
            _request("update_mood", mood="good", energy="high"), UPDATE_MOOD
        )
        assert result.errors == ["Unknown parameter: energy"]

    def test_object_parameter(self):
        result = validate_request(
            _request("save_health_entry", entry_type="note", data="not an object"),
            SAVE_HEALTH_ENTRY,
        )
        assert result.errors == ["Parameter data must be of type object"]

    def test_confidence_range(self):
        result = validate_request(_request("update_mood", confidence=1.5, mood="good"), UPDATE_MOOD)
        assert result.errors == ["Confidence must be between 0 and 1"]

    def test_collects_every_error(self):
        result = validate_request(
            _request("create_check_in", mood=3, symptoms="headache", medication_taken="yes"),
            CREATE_CHECK_IN,
        )
        assert len(result.errors) == 3


class TestGuardrails:
    @pytest.fixture
    def guardrails(self) -> GuardrailEvaluator:
        return GuardrailEvaluator()

    def test_low_confidence_denied(self, guardrails):
        decision = guardrails.evaluate(
            _request("update_mood", confidence=0.5, mood="good"), UPDATE_MOOD, "I feel good"
        )
        assert not decision.allowed
        assert decision.reason == LOW_CONFIDENCE_REASON

    def test_threshold_is_inclusive(self, guardrails):
        decision = guardrails.evaluate(
            _request("update_mood", confidence=0.7, mood="good"), UPDATE_MOOD, "I feel good"
        )
        assert decision.allowed

    def test_custom_threshold(self):
        guardrails = GuardrailEvaluator(GuardrailConfig(min_confidence=0.9))
        decision = guardrails.evaluate(
            _request("update_mood", confidence=0.85, mood="good"), UPDATE_MOOD, "good"
        )
        assert not decision.allowed
        assert guardrails.min_confidence == 0.9

    def test_critical_needs_explicit_intent(self, guardrails):
        request = _request(
            "create_care_log",
            log_type="visit",
            title="Checkup",
            occurred_at="2024-06-10T09:00:00Z",
        )
        denied = guardrails.evaluate(request, CREATE_CARE_LOG, "I went to the doctor")
        assert not denied.allowed
        assert denied.reason == MISSING_INTENT_REASON

        allowed = guardrails.evaluate(
            request, CREATE_CARE_LOG, "Please record my checkup from Monday"
        )
        assert allowed.allowed

    def test_critical_intent_matches_inflections(self, guardrails):
        request = _request(
            "create_care_log", log_type="test", title="Bloods", occurred_at="2024-06-10"
        )
        assert guardrails.evaluate(request, CREATE_CARE_LOG, "I logged my blood test").allowed
        # "catalog" must not count as "log"
        assert not guardrails.evaluate(request, CREATE_CARE_LOG, "the catalog").allowed

    def test_high_needs_capability_keywords(self, guardrails):
        request = _request("log_medication", medication_name="Aspirin")
        assert guardrails.evaluate(request, LOG_MEDICATION, "I took an aspirin").allowed
        assert guardrails.evaluate(request, LOG_MEDICATION, "just had my pills").allowed
        denied = guardrails.evaluate(request, LOG_MEDICATION, "I have a headache")
        assert not denied.allowed
        assert denied.reason == UNCLEAR_INTENT_REASON

    def test_high_visit_keywords(self, guardrails):
        request = _request("log_doctor_visit", visit_type="appointment", date="2024-06-10")
        assert guardrails.evaluate(request, LOG_DOCTOR_VISIT, "I visited the clinic").allowed

    def test_crisis_mood_is_flagged_not_blocked(self, guardrails):
        decision = guardrails.evaluate(
            _request("update_mood", mood="crisis"), UPDATE_MOOD, "I'm in crisis"
        )
        assert decision.allowed
        assert decision.crisis

    def test_crisis_flag_only_for_mood_capabilities(self, guardrails):
        request = _request("create_check_in", mood="okay")
        assert guardrails.flags(request, CREATE_CHECK_IN) == set()
        crisis = _request("create_check_in", mood="CRISIS")
        assert guardrails.flags(crisis, CREATE_CHECK_IN) == {"crisis"}
