"""
SessionTracker: design session lifecycle and dwell-time accounting.

States:  INACTIVE → ACTIVE ⇄ PAUSED → ENDED (terminal)

The tracker owns no queue and does no I/O. It decides which lifecycle and
navigation events to emit and hands them to an emit callback together with
their payload; the caller stamps the common context on them.

Times are whole seconds, floored, measured against an injectable clock.
"""

import logging
import math
import time
from enum import Enum
from typing import Callable, Optional

import config
from models.event import EventType

logger = logging.getLogger(__name__)

EmitFn = Callable[..., None]


class SessionState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class SessionTracker:
    def __init__(
        self,
        emit: EmitFn,
        clock: Callable[[], float] = time.time,
        initial_tab: str = config.INITIAL_TAB,
    ):
        self._emit = emit
        self._clock = clock
        self.state = SessionState.INACTIVE
        self.current_tab = initial_tab
        self.session_start: Optional[float] = None
        self.tab_start: Optional[float] = None

    # ---------- Queries ----------

    @property
    def is_open(self) -> bool:
        """Active or paused: the session still accepts events."""
        return self.state in (SessionState.ACTIVE, SessionState.PAUSED)

    def elapsed_seconds(self) -> int:
        if self.session_start is None:
            return 0
        return max(0, math.floor(self._clock() - self.session_start))

    def _seconds_on_tab(self) -> int:
        if self.tab_start is None:
            return 0
        return max(0, math.floor(self._clock() - self.tab_start))

    # ---------- Transitions ----------

    def start(self) -> bool:
        if self.state is not SessionState.INACTIVE:
            logger.debug(f"start() ignored in state {self.state.value}")
            return False
        now = self._clock()
        self.session_start = now
        self.tab_start = now
        self.state = SessionState.ACTIVE
        self._emit(EventType.DESIGN_SESSION_START)
        return True

    def pause(self) -> bool:
        """Tab hidden."""
        if self.state is not SessionState.ACTIVE:
            logger.debug(f"pause() ignored in state {self.state.value}")
            return False
        self.record_tab_time()
        self.state = SessionState.PAUSED
        self._emit(EventType.DESIGN_SESSION_PAUSE)
        return True

    def resume(self) -> bool:
        """Tab visible again."""
        if self.state is not SessionState.PAUSED:
            logger.debug(f"resume() ignored in state {self.state.value}")
            return False
        self.state = SessionState.ACTIVE
        self.tab_start = self._clock()
        self._emit(EventType.DESIGN_SESSION_RESUME)
        return True

    def end(self) -> Optional[int]:
        """Close the session. Returns the cumulative design time in seconds."""
        if not self.is_open:
            logger.debug(f"end() ignored in state {self.state.value}")
            return None
        self.record_tab_time()
        total = self.elapsed_seconds()
        self._emit(EventType.DESIGN_SESSION_END, total_design_time=total)
        self.state = SessionState.ENDED
        return total

    # ---------- Navigation ----------

    def switch_tab(self, new_tab: str) -> bool:
        if new_tab == self.current_tab:
            return False

        self.record_tab_time()

        previous_tab = self.current_tab
        self.current_tab = new_tab
        self.tab_start = self._clock()
        self._emit(EventType.TAB_SWITCH, previous_tab=previous_tab, new_tab=new_tab)
        return True

    def record_tab_time(self) -> Optional[int]:
        """
        Emit tab_time_recorded for the current tab. Nothing is emitted for a
        zero-second stay, or while paused (the pause already recorded it).
        """
        if self.state is not SessionState.ACTIVE:
            return None
        seconds = self._seconds_on_tab()
        if seconds <= 0:
            return None
        self._emit(EventType.TAB_TIME_RECORDED, time_on_tab=seconds)
        return seconds
