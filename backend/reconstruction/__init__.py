from reconstruction.analytics import compute_assignment_analytics, compute_design_analytics
from reconstruction.diff import DIFF_FIELDS, diff_snapshots, render_value
from reconstruction.reflections import collect_reflection_responses
from reconstruction.snapshots import list_snapshots, snapshot_at, snapshot_entry_at
from reconstruction.timeline import build_timeline, chronological, reconstruct_history

__all__ = [
    "compute_assignment_analytics", "compute_design_analytics",
    "DIFF_FIELDS", "diff_snapshots", "render_value",
    "collect_reflection_responses",
    "list_snapshots", "snapshot_at", "snapshot_entry_at",
    "build_timeline", "chronological", "reconstruct_history",
]
