"""
DesignEvent: the atomic unit of design telemetry.

Every event type is its own pydantic model carrying exactly its own payload.
The category is a Literal field on each variant, so the type → category
mapping lives in the variant definitions themselves. DesignEvent is the
discriminated union of all variants (discriminator: eventType).

Wire format is camelCase (eventType, designSessionId, ...); Python code uses
snake_case attribute names.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from models.snapshot import ConfigSnapshot


class EventCategory(str, Enum):
    SESSION = "session"
    NAVIGATION = "navigation"
    FIELD = "field"
    TEMPLATE = "template"
    RULE = "rule"
    TEST = "test"
    REFLECTION = "reflection"
    SAVE = "save"


class EventType(str, Enum):
    DESIGN_SESSION_START = "design_session_start"
    DESIGN_SESSION_END = "design_session_end"
    DESIGN_SESSION_PAUSE = "design_session_pause"
    DESIGN_SESSION_RESUME = "design_session_resume"
    TAB_SWITCH = "tab_switch"
    TAB_TIME_RECORDED = "tab_time_recorded"
    FIELD_FOCUS = "field_focus"
    FIELD_BLUR = "field_blur"
    FIELD_CHANGE = "field_change"
    FIELD_PASTE = "field_paste"
    FIELD_CLEAR = "field_clear"
    ROLE_SELECTED = "role_selected"
    TEMPLATE_VIEWED = "template_viewed"
    TEMPLATE_APPLIED = "template_applied"
    TEMPLATE_MODIFIED = "template_modified"
    PERSONALITY_SELECTED = "personality_selected"
    SUGGESTION_VIEWED = "suggestion_viewed"
    SUGGESTION_APPLIED = "suggestion_applied"
    PROMPT_BLOCK_SELECTED = "prompt_block_selected"
    PROMPT_BLOCK_REMOVED = "prompt_block_removed"
    PROMPT_BLOCKS_REORDERED = "prompt_blocks_reordered"
    PROMPT_BLOCK_CUSTOM_ADDED = "prompt_block_custom_added"
    RULE_ADDED = "rule_added"
    RULE_REMOVED = "rule_removed"
    RULE_EDITED = "rule_edited"
    RULE_REORDERED = "rule_reordered"
    TEST_CONVERSATION_STARTED = "test_conversation_started"
    TEST_MESSAGE_SENT = "test_message_sent"
    TEST_RESPONSE_RECEIVED = "test_response_received"
    TEST_CONVERSATION_RESET = "test_conversation_reset"
    POST_TEST_EDIT = "post_test_edit"
    REFLECTION_PROMPT_SHOWN = "reflection_prompt_shown"
    REFLECTION_DISMISSED = "reflection_dismissed"
    REFLECTION_SUBMITTED = "reflection_submitted"
    DRAFT_SAVED = "draft_saved"
    SUBMISSION_ATTEMPTED = "submission_attempted"
    SUBMISSION_COMPLETED = "submission_completed"
    UNSUBMIT_REQUESTED = "unsubmit_requested"


RuleType = Literal["do", "dont"]


# ---------- Common envelope ----------

class _DesignEventBase(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: Optional[int] = None                # assigned by the store on ingest
    timestamp: datetime
    session_id: str                         # stable per client context
    design_session_id: str                  # fresh per design session
    user_id: int
    assignment_id: int
    agent_config_id: Optional[int] = None   # unset until the design is first saved
    version: Optional[int] = None
    active_tab: Optional[str] = None
    total_design_time: int = 0              # seconds since session start
    sequence: Optional[int] = None          # client-assigned, per design session
    device_type: Optional[str] = None
    browser_name: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def dedupe_key(self) -> Optional[tuple[str, str, int]]:
        if self.sequence is None:
            return None
        return (self.session_id, self.design_session_id, self.sequence)


class _SessionEvent(_DesignEventBase):
    event_category: Literal["session"] = "session"


class _NavigationEvent(_DesignEventBase):
    event_category: Literal["navigation"] = "navigation"


class _FieldEvent(_DesignEventBase):
    event_category: Literal["field"] = "field"


class _TemplateEvent(_DesignEventBase):
    event_category: Literal["template"] = "template"


class _RuleEvent(_DesignEventBase):
    event_category: Literal["rule"] = "rule"
    rule_type: RuleType
    field_name: str                         # "dosRules" | "dontsRules"


class _TestEvent(_DesignEventBase):
    __test__ = False                        # not a pytest class
    event_category: Literal["test"] = "test"


class _ReflectionEvent(_DesignEventBase):
    event_category: Literal["reflection"] = "reflection"
    reflection_prompt_id: str


class _SaveEvent(_DesignEventBase):
    event_category: Literal["save"] = "save"


# ---------- Session ----------

class DesignSessionStart(_SessionEvent):
    event_type: Literal["design_session_start"] = "design_session_start"


class DesignSessionEnd(_SessionEvent):
    event_type: Literal["design_session_end"] = "design_session_end"


class DesignSessionPause(_SessionEvent):
    event_type: Literal["design_session_pause"] = "design_session_pause"


class DesignSessionResume(_SessionEvent):
    event_type: Literal["design_session_resume"] = "design_session_resume"


# ---------- Navigation ----------

class TabSwitch(_NavigationEvent):
    event_type: Literal["tab_switch"] = "tab_switch"
    previous_tab: str
    new_tab: str


class TabTimeRecorded(_NavigationEvent):
    event_type: Literal["tab_time_recorded"] = "tab_time_recorded"
    time_on_tab: int


# ---------- Field ----------

class FieldFocus(_FieldEvent):
    event_type: Literal["field_focus"] = "field_focus"
    field_name: str


class FieldBlur(_FieldEvent):
    event_type: Literal["field_blur"] = "field_blur"
    field_name: str
    character_count: int = 0
    word_count: int = 0


class FieldChange(_FieldEvent):
    event_type: Literal["field_change"] = "field_change"
    field_name: str
    previous_value: str = ""
    new_value: str = ""
    change_type: str = "type"               # type | paste | select | toggle | click
    character_count: int = 0
    word_count: int = 0


class FieldPaste(_FieldEvent):
    event_type: Literal["field_paste"] = "field_paste"
    field_name: str
    new_value: str = ""
    character_count: int = 0
    word_count: int = 0


class FieldClear(_FieldEvent):
    event_type: Literal["field_clear"] = "field_clear"
    field_name: str
    previous_value: str = ""


# ---------- Template ----------

class RoleSelected(_TemplateEvent):
    event_type: Literal["role_selected"] = "role_selected"
    role_selected: str
    template_name: Optional[str] = None


class TemplateViewed(_TemplateEvent):
    event_type: Literal["template_viewed"] = "template_viewed"
    template_name: str


class TemplateApplied(_TemplateEvent):
    event_type: Literal["template_applied"] = "template_applied"
    template_name: str
    field_name: Optional[str] = None


class TemplateModified(_TemplateEvent):
    event_type: Literal["template_modified"] = "template_modified"
    template_name: str
    field_name: Optional[str] = None


class PersonalitySelected(_TemplateEvent):
    event_type: Literal["personality_selected"] = "personality_selected"
    personality_selected: str
    template_name: Optional[str] = None


class SuggestionViewed(_TemplateEvent):
    event_type: Literal["suggestion_viewed"] = "suggestion_viewed"
    suggestion_source: str
    field_name: Optional[str] = None


class SuggestionApplied(_TemplateEvent):
    event_type: Literal["suggestion_applied"] = "suggestion_applied"
    suggestion_source: str
    field_name: Optional[str] = None


class PromptBlockSelected(_TemplateEvent):
    event_type: Literal["prompt_block_selected"] = "prompt_block_selected"
    prompt_block_id: str
    prompt_block_category: Optional[str] = None
    selected_block_ids: list[str] = Field(default_factory=list)


class PromptBlockRemoved(_TemplateEvent):
    event_type: Literal["prompt_block_removed"] = "prompt_block_removed"
    prompt_block_id: str
    prompt_block_category: Optional[str] = None
    selected_block_ids: list[str] = Field(default_factory=list)


class PromptBlocksReordered(_TemplateEvent):
    event_type: Literal["prompt_blocks_reordered"] = "prompt_blocks_reordered"
    selected_block_ids: list[str] = Field(default_factory=list)


class PromptBlockCustomAdded(_TemplateEvent):
    event_type: Literal["prompt_block_custom_added"] = "prompt_block_custom_added"
    new_value: str = ""
    character_count: int = 0
    word_count: int = 0


# ---------- Rule ----------

class RuleAdded(_RuleEvent):
    event_type: Literal["rule_added"] = "rule_added"
    new_value: str = ""


class RuleRemoved(_RuleEvent):
    event_type: Literal["rule_removed"] = "rule_removed"
    previous_value: str = ""


class RuleEdited(_RuleEvent):
    event_type: Literal["rule_edited"] = "rule_edited"
    previous_value: str = ""
    new_value: str = ""


class RuleReordered(_RuleEvent):
    event_type: Literal["rule_reordered"] = "rule_reordered"
    rules: list[str] = Field(default_factory=list)


# ---------- Test ----------

class TestConversationStarted(_TestEvent):
    event_type: Literal["test_conversation_started"] = "test_conversation_started"
    test_conversation_id: int


class TestMessageSent(_TestEvent):
    event_type: Literal["test_message_sent"] = "test_message_sent"
    test_conversation_id: int
    test_message_count: int = 0


class TestResponseReceived(_TestEvent):
    event_type: Literal["test_response_received"] = "test_response_received"
    test_conversation_id: int
    test_message_count: int = 0


class TestConversationReset(_TestEvent):
    event_type: Literal["test_conversation_reset"] = "test_conversation_reset"
    test_conversation_id: Optional[int] = None


class PostTestEdit(_TestEvent):
    event_type: Literal["post_test_edit"] = "post_test_edit"
    field_name: str
    test_conversation_id: Optional[int] = None


# ---------- Reflection ----------

class ReflectionPromptShown(_ReflectionEvent):
    event_type: Literal["reflection_prompt_shown"] = "reflection_prompt_shown"
    reflection_prompt_text: str = ""


class ReflectionDismissed(_ReflectionEvent):
    event_type: Literal["reflection_dismissed"] = "reflection_dismissed"


class ReflectionSubmitted(_ReflectionEvent):
    event_type: Literal["reflection_submitted"] = "reflection_submitted"
    reflection_prompt_text: Optional[str] = None
    reflection_response: str


# ---------- Save ----------

class DraftSaved(_SaveEvent):
    event_type: Literal["draft_saved"] = "draft_saved"
    agent_config_snapshot: ConfigSnapshot


class SubmissionAttempted(_SaveEvent):
    event_type: Literal["submission_attempted"] = "submission_attempted"


class SubmissionCompleted(_SaveEvent):
    event_type: Literal["submission_completed"] = "submission_completed"
    agent_config_snapshot: ConfigSnapshot


class UnsubmitRequested(_SaveEvent):
    event_type: Literal["unsubmit_requested"] = "unsubmit_requested"


# ---------- Union + registry ----------

_VARIANTS = (
    DesignSessionStart, DesignSessionEnd, DesignSessionPause, DesignSessionResume,
    TabSwitch, TabTimeRecorded,
    FieldFocus, FieldBlur, FieldChange, FieldPaste, FieldClear,
    RoleSelected, TemplateViewed, TemplateApplied, TemplateModified,
    PersonalitySelected, SuggestionViewed, SuggestionApplied,
    PromptBlockSelected, PromptBlockRemoved, PromptBlocksReordered, PromptBlockCustomAdded,
    RuleAdded, RuleRemoved, RuleEdited, RuleReordered,
    TestConversationStarted, TestMessageSent, TestResponseReceived,
    TestConversationReset, PostTestEdit,
    ReflectionPromptShown, ReflectionDismissed, ReflectionSubmitted,
    DraftSaved, SubmissionAttempted, SubmissionCompleted, UnsubmitRequested,
)

DesignEvent = Annotated[Union[_VARIANTS], Field(discriminator="event_type")]

SNAPSHOT_EVENT_TYPES = frozenset({EventType.DRAFT_SAVED, EventType.SUBMISSION_COMPLETED})


def _build_registry() -> dict[EventType, type]:
    registry: dict[EventType, type] = {}
    for variant in _VARIANTS:
        event_type = EventType(variant.model_fields["event_type"].default)
        if event_type in registry:
            raise RuntimeError(f"Duplicate variant for event type {event_type.value!r}")
        EventCategory(variant.model_fields["event_category"].default)
        registry[event_type] = variant

    missing = set(EventType) - set(registry)
    if missing:
        names = ", ".join(sorted(t.value for t in missing))
        raise RuntimeError(f"Event types without a variant: {names}")
    return registry


EVENT_VARIANTS = _build_registry()

_event_adapter = TypeAdapter(DesignEvent)
_event_list_adapter = TypeAdapter(list[DesignEvent])


def variant_for(event_type: Union[EventType, str]) -> type:
    return EVENT_VARIANTS[EventType(event_type)]


def category_of(event_type: Union[EventType, str]) -> EventCategory:
    variant = variant_for(event_type)
    return EventCategory(variant.model_fields["event_category"].default)


def parse_event(data: Any):
    """Validate one wire-format (camelCase) event dict into its variant."""
    return _event_adapter.validate_python(data)


def parse_events(data: Any) -> list:
    return _event_list_adapter.validate_python(data)


def event_to_wire(event) -> dict[str, Any]:
    return event.model_dump(mode="json", by_alias=True, exclude_none=True)


def has_snapshot(event) -> bool:
    return getattr(event, "agent_config_snapshot", None) is not None
