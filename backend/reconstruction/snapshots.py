"""
Point-in-time configuration snapshots.

Only draft_saved and submission_completed carry a snapshot. The config "as of"
a moment is the latest snapshot captured at or before it.
"""

from datetime import datetime, timezone
from typing import Optional

from models.event import has_snapshot
from models.timeline import SnapshotEntry
from reconstruction.timeline import chronological


def list_snapshots(events: list) -> list[SnapshotEntry]:
    return [
        SnapshotEntry(
            event_id=e.id,
            event_type=e.event_type,
            timestamp=e.timestamp,
            version=e.version,
            snapshot=e.agent_config_snapshot,
        )
        for e in chronological(events)
        if has_snapshot(e)
    ]


def snapshot_entry_at(events: list, at: datetime) -> Optional[SnapshotEntry]:
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    latest = None
    for entry in list_snapshots(events):
        if entry.timestamp > at:
            break
        latest = entry
    return latest


def snapshot_at(events: list, at: datetime):
    entry = snapshot_entry_at(events, at)
    return entry.snapshot if entry else None
