"""
Client identity helpers.

sessionId is stable per client context and survives restarts (kept in a small
JSON state file). Device type and browser name are derived from the
user-agent string.
"""

import json
import logging
import os
import re
import uuid
from typing import Optional

from pydantic import BaseModel

import config

logger = logging.getLogger(__name__)

_TABLET_RE = re.compile(r"tablet|ipad|playbook|silk", re.IGNORECASE)
_MOBILE_RE = re.compile(r"mobile|iphone|ipod|android|blackberry|opera mini|iemobile", re.IGNORECASE)


class ClientInfo(BaseModel):
    device_type: Optional[str] = None
    browser_name: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_user_agent(cls, user_agent: Optional[str]) -> "ClientInfo":
        if not user_agent:
            return cls()
        return cls(
            device_type=device_type(user_agent),
            browser_name=browser_name(user_agent),
            user_agent=user_agent,
        )


def device_type(user_agent: str) -> str:
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def browser_name(user_agent: str) -> str:
    # Edge and Opera also advertise Chrome, so they are checked first.
    if "Edg" in user_agent:
        return "Edge"
    if "OPR" in user_agent or "Opera" in user_agent:
        return "Opera"
    if "Firefox" in user_agent:
        return "Firefox"
    if "Chrome" in user_agent:
        return "Chrome"
    if "Safari" in user_agent:
        return "Safari"
    return "Unknown"


def load_session_id(path: str = config.STATE_PATH) -> str:
    """Return the persisted client session id, creating it on first use."""
    state: dict = {}
    try:
        with open(path) as f:
            state = json.load(f)
    except FileNotFoundError:
        pass
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable client state at {path}: {e}")

    session_id = state.get("session_id") if isinstance(state, dict) else None
    if isinstance(session_id, str) and session_id:
        return session_id

    session_id = str(uuid.uuid4())
    state = state if isinstance(state, dict) else {}
    state["session_id"] = session_id
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(state, f)
    except OSError as e:
        logger.warning(f"Could not persist client session id to {path}: {e}")
    return session_id
