from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from models.analytics import DesignAnalytics
from models.event import DesignEvent
from models.snapshot import ConfigSnapshot


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DesignHistory(_CamelModel):
    """Full event stream for one config plus the analytics derived from it."""
    events: list[DesignEvent]
    analytics: DesignAnalytics


class Timeline(_CamelModel):
    timeline: list[DesignEvent]
    total: int                 # matching events before limit / offset


class SnapshotEntry(_CamelModel):
    event_id: Optional[int] = None
    event_type: str
    timestamp: datetime
    version: Optional[int] = None
    snapshot: ConfigSnapshot
