from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TemplateUsage(_CamelModel):
    role_used: Optional[str] = None           # last role_selected wins
    personality_used: Optional[str] = None    # last personality_selected wins
    templates_applied: int = 0


class DesignAnalytics(_CamelModel):
    total_design_time: int = 0                # seconds
    iteration_count: int = 0
    test_conversation_count: int = 0
    template_usage: TemplateUsage = Field(default_factory=TemplateUsage)
    reflection_responses: dict[str, str] = Field(default_factory=dict)
    category_breakdown: dict[str, int] = Field(default_factory=dict)
    total_events: int = 0


class AssignmentDesignAnalytics(_CamelModel):
    total_students: int = 0
    average_design_time: int = 0              # seconds, rounded
    average_iterations: float = 0.0           # 1 decimal
    average_test_conversations: float = 0.0   # 1 decimal
    role_usage_stats: dict[str, int] = Field(default_factory=dict)
    personality_usage_stats: dict[str, int] = Field(default_factory=dict)
