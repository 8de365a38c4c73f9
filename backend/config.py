"""
Design telemetry configuration.

Pipeline constants are fixed; the instrumentation has no runtime knobs.
Deployment settings (ingest URL, state file, timeline caps, CORS) can be
overridden through environment variables, e.g. in .env:
  DESIGN_LOG_INGEST_URL=https://example.edu/api
"""

import os

# ─── Client pipeline (fixed) ───────────────────────────────────────────

FLUSH_INTERVAL_MS = 10_000    # periodic flush timer
BATCH_SIZE = 50               # queue length that triggers an immediate flush
MIN_BATCH_SIZE = 5            # non-forced flushes wait for at least this many
MAX_VALUE_LENGTH = 500        # previousValue / newValue truncation

INITIAL_TAB = "identity"
BATCH_ENDPOINT = "/agent-design-logs/batch"

# ─── Deployment (env overridable) ──────────────────────────────────────

INGEST_URL = os.environ.get("DESIGN_LOG_INGEST_URL", "http://localhost:8000")
STATE_PATH = os.environ.get(
    "DESIGN_LOG_STATE_PATH",
    os.path.join(os.path.expanduser("~"), ".design_telemetry", "state.json"),
)

TIMELINE_DEFAULT_LIMIT = int(os.environ.get("TIMELINE_DEFAULT_LIMIT", "500"))
TIMELINE_MAX_LIMIT = int(os.environ.get("TIMELINE_MAX_LIMIT", "1000"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
