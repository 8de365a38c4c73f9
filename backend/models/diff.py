from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ScalarValue = Optional[Union[float, str]]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldDiff(_CamelModel):
    key: str                                  # camelCase snapshot key, e.g. "agentName"
    label: str
    kind: Literal["scalar", "list"]
    changed: bool
    before: Union[ScalarValue, list[str]] = None
    after: Union[ScalarValue, list[str]] = None
    before_display: str
    after_display: str
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)


class SnapshotDiff(_CamelModel):
    before_timestamp: datetime
    after_timestamp: datetime
    fields: list[FieldDiff]
    changed_fields: list[str]
    total_fields: int
