import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

import config
from models.analytics import AssignmentDesignAnalytics
from models.diff import SnapshotDiff
from models.event import DesignEvent, EventCategory
from models.reflection import ReflectionResponse
from models.snapshot import ConfigSnapshot
from models.timeline import DesignHistory, SnapshotEntry, Timeline
from reconstruction.analytics import compute_assignment_analytics
from reconstruction.diff import diff_snapshots
from reconstruction.reflections import collect_reflection_responses
from reconstruction.snapshots import list_snapshots, snapshot_at, snapshot_entry_at
from reconstruction.timeline import build_timeline, chronological, reconstruct_history
from store import IngestResult, event_store
from telemetry.transport import MODE_HEADER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent-design-logs", tags=["design-logs"])


# ---------- Request / Response schemas ----------

class BatchIngestRequest(BaseModel):
    events: list[DesignEvent]


# ---------- Helpers ----------

def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def _parse_timestamp(value: str) -> datetime:
    try:
        ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid timestamp")
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _config_events(agent_config_id: int) -> list:
    if not event_store.has_config(agent_config_id):
        raise HTTPException(status_code=404, detail="Agent config not found")
    return event_store.events_for_config(agent_config_id)


# ---------- Ingest ----------

@router.post("/batch", response_model=IngestResult)
async def ingest_batch(body: BatchIngestRequest, request: Request):
    """
    Appends a batch of design events to the per-(user, assignment) logs.
    Used by both the confirmed flush path and the best-effort unload path.
    """
    result = event_store.append_batch(body.events, ip_address=_client_ip(request))
    logger.info(
        f"Ingested {result.logged} design events "
        f"({result.duplicates} duplicates, mode={request.headers.get(MODE_HEADER, 'unknown')})"
    )
    return result


# ---------- Read paths ----------

@router.get("/assignment/{assignment_id}", response_model=list[DesignEvent])
async def get_user_assignment_events(assignment_id: int, user_id: int = Query(..., alias="userId")):
    """A user's own events for an assignment, including those logged before the first save."""
    return chronological(event_store.events_for_user(user_id, assignment_id))


@router.get("/config/{agent_config_id}", response_model=DesignHistory)
async def get_config_events(agent_config_id: int):
    """Full chronological event stream for a config, with derived analytics."""
    return reconstruct_history(_config_events(agent_config_id))


@router.get("/config/{agent_config_id}/timeline", response_model=Timeline)
async def get_config_timeline(
    agent_config_id: int,
    category: Optional[EventCategory] = None,
    limit: int = Query(config.TIMELINE_DEFAULT_LIMIT, ge=1, le=config.TIMELINE_MAX_LIMIT),
    offset: int = Query(0, ge=0),
):
    return build_timeline(_config_events(agent_config_id), category=category, limit=limit, offset=offset)


@router.get("/config/{agent_config_id}/snapshot", response_model=Optional[ConfigSnapshot])
async def get_config_snapshot(agent_config_id: int, timestamp: str):
    """The configuration as of `timestamp`, or null if nothing had been saved yet."""
    at = _parse_timestamp(timestamp)
    return snapshot_at(_config_events(agent_config_id), at)


@router.get("/config/{agent_config_id}/snapshots", response_model=list[SnapshotEntry])
async def get_config_snapshots(agent_config_id: int):
    return list_snapshots(_config_events(agent_config_id))


@router.get("/config/{agent_config_id}/diff", response_model=SnapshotDiff)
async def get_config_diff(
    agent_config_id: int,
    from_: str = Query(..., alias="from"),
    to: str = Query(...),
):
    """
    Compares the configuration as of two moments. Argument order does not
    matter; the earlier snapshot is always reported as "before".
    """
    events = _config_events(agent_config_id)
    first = snapshot_entry_at(events, _parse_timestamp(from_))
    second = snapshot_entry_at(events, _parse_timestamp(to))
    if first is None or second is None:
        raise HTTPException(status_code=404, detail="No snapshot at the requested time")
    return diff_snapshots(first.snapshot, first.timestamp, second.snapshot, second.timestamp)


@router.get("/config/{agent_config_id}/reflections", response_model=list[ReflectionResponse])
async def get_config_reflections(agent_config_id: int):
    return collect_reflection_responses(_config_events(agent_config_id))


@router.get("/assignment/{assignment_id}/analytics", response_model=AssignmentDesignAnalytics)
async def get_assignment_analytics(assignment_id: int):
    """Aggregate design analytics across every config of an assignment."""
    return compute_assignment_analytics(event_store.events_for_assignment(assignment_id))
