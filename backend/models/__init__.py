from models.event import DesignEvent, EventCategory, EventType, category_of, parse_event
from models.snapshot import ConfigSnapshot
from models.analytics import AssignmentDesignAnalytics, DesignAnalytics, TemplateUsage
from models.diff import FieldDiff, SnapshotDiff
from models.timeline import DesignHistory, SnapshotEntry, Timeline

__all__ = [
    "DesignEvent", "EventCategory", "EventType", "category_of", "parse_event",
    "ConfigSnapshot",
    "AssignmentDesignAnalytics", "DesignAnalytics", "TemplateUsage",
    "FieldDiff", "SnapshotDiff",
    "DesignHistory", "SnapshotEntry", "Timeline",
]
