"""
Snapshot diff tests: field coverage, normalization of empty / numeric values,
set-based list comparison and independence from argument order.
"""

from datetime import datetime, timedelta, timezone

from models.snapshot import ConfigSnapshot
from reconstruction.diff import DIFF_FIELDS, EMPTY, NOT_SET, diff_snapshots, render_value

T0 = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(minutes=5)

BEFORE = {
    "agentName": "Maya",
    "pedagogicalRole": "socratic_tutor",
    "temperature": 0.7,
    "systemPrompt": "Ask guiding questions.",
    "dosRules": ["Ask questions", "Be patient"],
    "dontsRules": [],
    "suggestedQuestions": ["What is a derivative?"],
}

AFTER = {
    "agentName": "Maya",
    "pedagogicalRole": "explainer",
    "temperature": "0.7",
    "systemPrompt": "Ask guiding questions. Never give answers.",
    "dosRules": ["Be patient", "Ask questions", "Use examples"],
    "dontsRules": ["Give answers"],
    "suggestedQuestions": ["What is a derivative?"],
}


def _field(diff, key):
    return next(f for f in diff.fields if f.key == key)


class TestSnapshotDiff:
    def setup_method(self):
        self.diff = diff_snapshots(BEFORE, T0, AFTER, T1)

    def test_covers_every_field_in_order(self):
        assert self.diff.total_fields == 13
        assert [f.key for f in self.diff.fields] == [f.key for f in DIFF_FIELDS]

    def test_changed_fields(self):
        assert self.diff.changed_fields == ["pedagogicalRole", "systemPrompt", "dosRules", "dontsRules"]

    def test_numeric_string_equals_number(self):
        temperature = _field(self.diff, "temperature")
        assert not temperature.changed
        assert temperature.before_display == "0.7"

    def test_list_added_removed_unchanged(self):
        dos = _field(self.diff, "dosRules")
        assert dos.added == ["Use examples"]
        assert dos.removed == []
        assert dos.unchanged == ["Be patient", "Ask questions"]

        donts = _field(self.diff, "dontsRules")
        assert donts.before_display == EMPTY
        assert donts.added == ["Give answers"]

    def test_unset_fields_show_placeholder(self):
        persona = _field(self.diff, "personaDescription")
        assert not persona.changed
        assert persona.before_display == NOT_SET
        assert persona.after_display == NOT_SET

    def test_argument_order_does_not_matter(self):
        swapped = diff_snapshots(AFTER, T1, BEFORE, T0)
        assert swapped == self.diff
        assert swapped.before_timestamp == T0

    def test_equal_timestamps_order_by_content(self):
        a = diff_snapshots(BEFORE, T0, AFTER, T0)
        b = diff_snapshots(AFTER, T0, BEFORE, T0)
        assert a == b

    def test_self_diff_has_no_changes(self):
        diff = diff_snapshots(AFTER, T0, AFTER, T1)
        assert diff.changed_fields == []
        assert all(not f.added and not f.removed for f in diff.fields)

    def test_partial_overlap(self):
        diff = diff_snapshots({"dontsRules": ["x", "y"]}, T0, {"dontsRules": ["y", "z"]}, T1)
        donts = _field(diff, "dontsRules")
        assert donts.added == ["z"]
        assert donts.removed == ["x"]
        assert donts.unchanged == ["y"]
        assert diff.changed_fields == ["dontsRules"]

    def test_reorder_and_duplicates_are_not_changes(self):
        diff = diff_snapshots(
            {"dosRules": ["a", "b", "b"]}, T0,
            {"dosRules": ["b", "a"]}, T1,
        )
        assert diff.changed_fields == []
        assert _field(diff, "dosRules").unchanged == ["b", "a"]

    def test_empty_text_equals_unset(self):
        diff = diff_snapshots({"welcomeMessage": ""}, T0, {}, T1)
        assert not _field(diff, "welcomeMessage").changed

    def test_missing_list_vs_empty_list(self):
        diff = diff_snapshots({}, T0, {"suggestedQuestions": []}, T1)
        questions = _field(diff, "suggestedQuestions")
        assert not questions.changed
        assert questions.before_display == NOT_SET
        assert questions.after_display == EMPTY

    def test_malformed_snapshot_renders(self):
        diff = diff_snapshots("{not json", T0, ConfigSnapshot(agent_name="Maya"), T1)
        assert diff.changed_fields == ["agentName"]
        assert _field(diff, "agentName").before_display == NOT_SET


class TestRenderValue:
    def test_scalars(self):
        assert render_value(None) == NOT_SET
        assert render_value("") == NOT_SET
        assert render_value(0.5) == "0.5"
        assert render_value(1.0) == "1"
        assert render_value("calm") == "calm"

    def test_lists(self):
        assert render_value(None, "list") == NOT_SET
        assert render_value((), "list") == EMPTY
        assert render_value(("a", "b"), "list") == "a\nb"
