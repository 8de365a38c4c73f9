"""
Timeline reconstruction for one agent config.

Events are ordered by timestamp; events with identical timestamps keep their
ingest order (the sort is stable and the store returns rows in arrival order).
"""

from typing import Optional, Union

import config
from models.event import EventCategory
from models.timeline import DesignHistory, Timeline
from reconstruction.analytics import compute_design_analytics


def chronological(events: list) -> list:
    return sorted(events, key=lambda e: e.timestamp)


def reconstruct_history(events: list) -> DesignHistory:
    ordered = chronological(events)
    return DesignHistory(events=ordered, analytics=compute_design_analytics(ordered))


def build_timeline(
    events: list,
    category: Optional[Union[EventCategory, str]] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Timeline:
    """
    Filter by category, then page. `total` counts every event matching the
    filter, independent of limit / offset.
    """
    ordered = chronological(events)
    if category is not None:
        wanted = EventCategory(category).value
        ordered = [e for e in ordered if e.event_category == wanted]

    if limit is None:
        limit = config.TIMELINE_DEFAULT_LIMIT
    offset = max(0, offset)
    page = ordered[offset:offset + max(0, limit)]
    return Timeline(timeline=page, total=len(ordered))
