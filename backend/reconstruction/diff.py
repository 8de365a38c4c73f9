"""
Field-level comparison of two configuration snapshots.

The pair is reordered internally so the earlier snapshot is always "before"
(equal timestamps fall back to a canonical serialization of the snapshot),
which makes the result independent of argument order.

Scalar fields compare normalized values: empty text equals unset, and
temperature compares numerically. List fields compare as sets:
  added     = after  \\ before   (in "after" order)
  removed   = before \\ after    (in "before" order)
  unchanged = after  ∩ before   (in "after" order)
Reordering or duplicating entries is therefore not a change.
"""

from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional, Union

from models.diff import FieldDiff, SnapshotDiff
from models.snapshot import ConfigSnapshot

NOT_SET = "Not set"
EMPTY = "Empty"


class DiffField(NamedTuple):
    key: str        # camelCase key in the snapshot
    attr: str       # ConfigSnapshot attribute
    label: str
    kind: str       # "scalar" | "list"


DIFF_FIELDS: tuple[DiffField, ...] = (
    DiffField("agentName", "agent_name", "Agent Name", "scalar"),
    DiffField("personaDescription", "persona_description", "Persona Description", "scalar"),
    DiffField("pedagogicalRole", "pedagogical_role", "Pedagogical Role", "scalar"),
    DiffField("personality", "personality", "Personality", "scalar"),
    DiffField("personalityPrompt", "personality_prompt", "Personality Prompt", "scalar"),
    DiffField("responseStyle", "response_style", "Response Style", "scalar"),
    DiffField("temperature", "temperature", "Temperature", "scalar"),
    DiffField("systemPrompt", "system_prompt", "System Prompt", "scalar"),
    DiffField("welcomeMessage", "welcome_message", "Welcome Message", "scalar"),
    DiffField("knowledgeContext", "knowledge_context", "Knowledge Context", "scalar"),
    DiffField("dosRules", "dos_rules", "Do's Rules", "list"),
    DiffField("dontsRules", "donts_rules", "Don'ts Rules", "list"),
    DiffField("suggestedQuestions", "suggested_questions", "Suggested Questions", "list"),
)

SnapshotLike = Union[ConfigSnapshot, dict, str, None]


def _as_snapshot(value: SnapshotLike) -> ConfigSnapshot:
    if isinstance(value, ConfigSnapshot):
        return value
    return ConfigSnapshot.model_validate(value)


def _as_utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def _scalar(value: Any) -> Optional[Union[float, str]]:
    if value is None or value == "":
        return None
    return value


def _unique(items: Optional[tuple[str, ...]]) -> list[str]:
    return list(dict.fromkeys(items or ()))


def render_value(value: Any, kind: str = "scalar") -> str:
    """Display text for one side of a diff, with placeholders for missing data."""
    if kind == "list":
        if value is None:
            return NOT_SET
        if not value:
            return EMPTY
        return "\n".join(value)
    if value is None or value == "":
        return NOT_SET
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _diff_field(field: DiffField, before: ConfigSnapshot, after: ConfigSnapshot) -> FieldDiff:
    raw_before = getattr(before, field.attr)
    raw_after = getattr(after, field.attr)

    if field.kind == "list":
        old = _unique(raw_before)
        new = _unique(raw_after)
        old_set, new_set = set(old), set(new)
        added = [item for item in new if item not in old_set]
        removed = [item for item in old if item not in new_set]
        unchanged = [item for item in new if item in old_set]
        return FieldDiff(
            key=field.key,
            label=field.label,
            kind="list",
            changed=bool(added or removed),
            before=old,
            after=new,
            before_display=render_value(raw_before, "list"),
            after_display=render_value(raw_after, "list"),
            added=added,
            removed=removed,
            unchanged=unchanged,
        )

    old_value = _scalar(raw_before)
    new_value = _scalar(raw_after)
    return FieldDiff(
        key=field.key,
        label=field.label,
        kind="scalar",
        changed=old_value != new_value,
        before=old_value,
        after=new_value,
        before_display=render_value(old_value),
        after_display=render_value(new_value),
    )


def diff_snapshots(
    first: SnapshotLike,
    first_at: datetime,
    second: SnapshotLike,
    second_at: datetime,
) -> SnapshotDiff:
    a = (_as_utc(first_at), _as_snapshot(first))
    b = (_as_utc(second_at), _as_snapshot(second))
    (before_at, before), (after_at, after) = sorted((a, b), key=lambda pair: (pair[0], pair[1].canonical()))

    fields = [_diff_field(f, before, after) for f in DIFF_FIELDS]
    return SnapshotDiff(
        before_timestamp=before_at,
        after_timestamp=after_at,
        fields=fields,
        changed_fields=[f.key for f in fields if f.changed],
        total_fields=len(DIFF_FIELDS),
    )
