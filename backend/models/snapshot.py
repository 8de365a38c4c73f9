"""
ConfigSnapshot: an immutable copy of the agent design configuration.

Snapshots are embedded in draft_saved / submission_completed events and read
back by the point-in-time viewer and the snapshot differ. Construction is
lenient: a missing or malformed field becomes unset instead of failing, so a
damaged snapshot still renders (as "Not set" / "Empty").
"""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "agent_name",
    "agent_title",
    "persona_description",
    "pedagogical_role",
    "personality",
    "personality_prompt",
    "response_style",
    "system_prompt",
    "welcome_message",
    "knowledge_context",
    "avatar_image_url",
)

LIST_FIELDS = (
    "dos_rules",
    "donts_rules",
    "suggested_questions",
    "selected_prompt_blocks",
)


def _coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _coerce_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, (list, tuple)):
        return None
    items = []
    for item in value:
        text = _coerce_text(item)
        if text is not None:
            items.append(text)
    return items


def _coerce_mapping(value: Any) -> Optional[dict[str, str]]:
    if not isinstance(value, dict):
        return None
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


class ConfigSnapshot(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    agent_name: Optional[str] = None
    agent_title: Optional[str] = None
    persona_description: Optional[str] = None
    pedagogical_role: Optional[str] = None
    personality: Optional[str] = None
    personality_prompt: Optional[str] = None
    response_style: Optional[str] = None
    temperature: Optional[float] = None
    system_prompt: Optional[str] = None
    welcome_message: Optional[str] = None
    knowledge_context: Optional[str] = None
    avatar_image_url: Optional[str] = None
    dos_rules: Optional[tuple[str, ...]] = None
    donts_rules: Optional[tuple[str, ...]] = None
    suggested_questions: Optional[tuple[str, ...]] = None
    selected_prompt_blocks: Optional[tuple[str, ...]] = None
    reflection_responses: Optional[dict[str, str]] = None

    @model_validator(mode="before")
    @classmethod
    def _lenient(cls, data: Any) -> dict:
        """Accept camelCase or snake_case keys and drop anything malformed."""
        if isinstance(data, ConfigSnapshot):
            return data.model_dump()
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                logger.debug("Snapshot is not valid JSON; treating as empty")
                data = {}
        if not isinstance(data, dict):
            return {}

        def pick(name: str) -> Any:
            camel = to_camel(name)
            return data[camel] if camel in data else data.get(name)

        cleaned: dict[str, Any] = {}
        for name in TEXT_FIELDS:
            cleaned[name] = _coerce_text(pick(name))
        for name in LIST_FIELDS:
            items = _coerce_list(pick(name))
            cleaned[name] = tuple(items) if items is not None else None
        cleaned["temperature"] = _coerce_number(pick("temperature"))
        cleaned["reflection_responses"] = _coerce_mapping(pick("reflection_responses"))
        return cleaned

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def canonical(self) -> str:
        """Stable serialization used to order snapshots with equal timestamps."""
        return json.dumps(self.to_wire(), sort_keys=True, separators=(",", ":"))
