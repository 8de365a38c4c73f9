"""
Tests for the design event model: the type → category mapping, wire format,
validation of the discriminated union, and lenient snapshot parsing.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from models.event import (
    EVENT_VARIANTS,
    EventCategory,
    EventType,
    FieldChange,
    DraftSaved,
    category_of,
    event_to_wire,
    has_snapshot,
    parse_event,
    parse_events,
    variant_for,
)
from models.reflection import REFLECTION_PROMPTS, get_reflection_prompt
from models.snapshot import ConfigSnapshot

EXPECTED_CATEGORIES = {
    EventCategory.SESSION: [
        "design_session_start", "design_session_end", "design_session_pause", "design_session_resume",
    ],
    EventCategory.NAVIGATION: ["tab_switch", "tab_time_recorded"],
    EventCategory.FIELD: ["field_focus", "field_blur", "field_change", "field_paste", "field_clear"],
    EventCategory.TEMPLATE: [
        "role_selected", "template_viewed", "template_applied", "template_modified",
        "personality_selected", "suggestion_viewed", "suggestion_applied",
        "prompt_block_selected", "prompt_block_removed", "prompt_blocks_reordered",
        "prompt_block_custom_added",
    ],
    EventCategory.RULE: ["rule_added", "rule_removed", "rule_edited", "rule_reordered"],
    EventCategory.TEST: [
        "test_conversation_started", "test_message_sent", "test_response_received",
        "test_conversation_reset", "post_test_edit",
    ],
    EventCategory.REFLECTION: ["reflection_prompt_shown", "reflection_dismissed", "reflection_submitted"],
    EventCategory.SAVE: ["draft_saved", "submission_attempted", "submission_completed", "unsubmit_requested"],
}


def _wire(event_type: str, category: str, **extra) -> dict:
    data = {
        "eventType": event_type,
        "eventCategory": category,
        "timestamp": "2026-01-01T10:00:00Z",
        "sessionId": "client-1",
        "designSessionId": "design-1",
        "userId": 1,
        "assignmentId": 2,
    }
    data.update(extra)
    return data


# ---------- Category mapping ----------

class TestCategoryMapping:
    def test_every_event_type_has_a_variant(self):
        assert set(EVENT_VARIANTS) == set(EventType)
        assert len(EventType) == 38

    def test_expected_category_for_every_type(self):
        seen = set()
        for category, names in EXPECTED_CATEGORIES.items():
            for name in names:
                assert category_of(name) == category, name
                seen.add(name)
        assert seen == {t.value for t in EventType}

    def test_variant_for_accepts_enum_and_string(self):
        assert variant_for(EventType.FIELD_CHANGE) is FieldChange
        assert variant_for("draft_saved") is DraftSaved

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            category_of("not_an_event")


# ---------- Wire format ----------

class TestWireFormat:
    def test_parse_dispatches_on_event_type(self):
        event = parse_event(_wire("field_change", "field", fieldName="agentName", newValue="Maya", characterCount=4))
        assert isinstance(event, FieldChange)
        assert event.field_name == "agentName"
        assert event.new_value == "Maya"
        assert event.event_category == "field"

    def test_category_defaults_from_variant(self):
        data = _wire("field_focus", "field", fieldName="agentName")
        del data["eventCategory"]
        assert parse_event(data).event_category == "field"

    def test_mismatched_category_rejected(self):
        with pytest.raises(ValidationError):
            parse_event(_wire("field_focus", "test", fieldName="agentName"))

    def test_unknown_event_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_event(_wire("field_teleport", "field"))

    def test_missing_payload_rejected(self):
        with pytest.raises(ValidationError):
            parse_event(_wire("tab_switch", "navigation", previousTab="identity"))

    def test_wire_output_is_camel_case(self):
        event = parse_event(_wire("tab_switch", "navigation", previousTab="identity", newTab="behavior"))
        wire = event_to_wire(event)
        assert wire["eventType"] == "tab_switch"
        assert wire["eventCategory"] == "navigation"
        assert wire["previousTab"] == "identity"
        assert wire["designSessionId"] == "design-1"
        assert "agentConfigId" not in wire  # unset fields are omitted
        assert parse_event(wire) == event

    def test_naive_timestamp_assumed_utc(self):
        event = parse_event(_wire("design_session_start", "session", timestamp="2026-01-01T10:00:00"))
        assert event.timestamp == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_dedupe_key_requires_sequence(self):
        assert parse_event(_wire("design_session_start", "session")).dedupe_key is None
        event = parse_event(_wire("design_session_start", "session", sequence=3))
        assert event.dedupe_key == ("client-1", "design-1", 3)

    def test_parse_events_mixed_batch(self):
        events = parse_events([
            _wire("design_session_start", "session"),
            _wire("rule_added", "rule", ruleType="do", fieldName="dosRules", newValue="Be kind"),
        ])
        assert [e.event_type for e in events] == ["design_session_start", "rule_added"]
        assert events[1].rule_type == "do"

    def test_rule_type_limited_to_do_and_dont(self):
        with pytest.raises(ValidationError):
            parse_event(_wire("rule_added", "rule", ruleType="maybe", fieldName="dosRules"))

    def test_only_save_events_carry_snapshots(self):
        saved = parse_event(_wire("draft_saved", "save", agentConfigSnapshot={"agentName": "Maya"}))
        attempted = parse_event(_wire("submission_attempted", "save"))
        assert has_snapshot(saved)
        assert not has_snapshot(attempted)


# ---------- Snapshot parsing ----------

class TestConfigSnapshot:
    def test_camel_and_snake_keys(self):
        camel = ConfigSnapshot.model_validate({"agentName": "Maya", "dosRules": ["a"]})
        snake = ConfigSnapshot.model_validate({"agent_name": "Maya", "dos_rules": ["a"]})
        assert camel == snake
        assert camel.dos_rules == ("a",)

    def test_malformed_fields_become_unset(self):
        snap = ConfigSnapshot.model_validate({
            "agentName": {"nested": True},
            "temperature": "warm",
            "dosRules": "not a list",
            "dontsRules": ["ok", 3, None],
        })
        assert snap.agent_name is None
        assert snap.temperature is None
        assert snap.dos_rules is None
        assert snap.donts_rules == ("ok", "3")

    def test_numeric_string_temperature(self):
        assert ConfigSnapshot.model_validate({"temperature": "0.7"}).temperature == 0.7

    def test_json_string_and_garbage(self):
        assert ConfigSnapshot.model_validate('{"agentName": "Maya"}').agent_name == "Maya"
        assert ConfigSnapshot.model_validate("{not json") == ConfigSnapshot()
        assert ConfigSnapshot.model_validate(None) == ConfigSnapshot()

    def test_canonical_ignores_key_order(self):
        a = ConfigSnapshot.model_validate({"agentName": "Maya", "personality": "calm"})
        b = ConfigSnapshot.model_validate({"personality": "calm", "agentName": "Maya"})
        assert a.canonical() == b.canonical()


# ---------- Reflection prompts ----------

class TestReflectionPrompts:
    def test_known_triggers(self):
        assert set(REFLECTION_PROMPTS) == {
            "role_selected", "system_prompt_written", "first_test_completed",
            "post_test_edit", "before_submission",
        }
        for trigger, definition in REFLECTION_PROMPTS.items():
            assert definition.id == trigger
            assert definition.prompt

    def test_unknown_trigger(self):
        assert get_reflection_prompt("after_lunch") is None
