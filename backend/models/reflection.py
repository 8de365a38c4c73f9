"""
Reflection prompt definitions, keyed by the workflow moment that triggers them.

An unknown trigger resolves to None: the prompt is simply not shown and
nothing is logged.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ReflectionPromptDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    prompt: str
    placeholder: str


class ReflectionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt_id: str
    prompt_text: str
    response: str
    timestamp: datetime


REFLECTION_PROMPTS: dict[str, ReflectionPromptDefinition] = {
    "role_selected": ReflectionPromptDefinition(
        id="role_selected",
        title="Role Selection Reflection",
        prompt="Why did you choose this role for your agent? How does it fit your learning goals?",
        placeholder="Share your reasoning for choosing this particular role...",
    ),
    "system_prompt_written": ReflectionPromptDefinition(
        id="system_prompt_written",
        title="System Prompt Reflection",
        prompt=(
            "What specific behaviors do you want your agent to exhibit? "
            "How will you know if it's working well?"
        ),
        placeholder="Describe the key behaviors you designed for and how you'll evaluate them...",
    ),
    "first_test_completed": ReflectionPromptDefinition(
        id="first_test_completed",
        title="First Test Reflection",
        prompt="Did your agent behave as expected? What surprised you?",
        placeholder="Reflect on how your agent performed compared to your expectations...",
    ),
    "post_test_edit": ReflectionPromptDefinition(
        id="post_test_edit",
        title="Iteration Reflection",
        prompt="What did you learn from testing that led to this change?",
        placeholder="Explain what you discovered and how you're addressing it...",
    ),
    "before_submission": ReflectionPromptDefinition(
        id="before_submission",
        title="Final Design Reflection",
        prompt="Summarize the key design decisions you made and why.",
        placeholder="Describe your main design choices and the reasoning behind them...",
    ),
}


def get_reflection_prompt(trigger: str) -> Optional[ReflectionPromptDefinition]:
    return REFLECTION_PROMPTS.get(trigger)
