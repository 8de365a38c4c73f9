"""
Explicit ownership of the active design session.

A DesignSessionOwner is created by the hosting application and holds at most
one DesignLogger. Asking for a different (user, assignment) pair ends the
previous session before the new logger is constructed. A logger whose session
has already ended is never handed out again.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from telemetry.capture import DesignLogger
from telemetry.session import SessionState
from telemetry.transport import DeliveryTransport

logger = logging.getLogger(__name__)

LoggerFactory = Callable[[int, int, DeliveryTransport], DesignLogger]


class DesignSessionOwner:
    def __init__(self, transport: DeliveryTransport, factory: Optional[LoggerFactory] = None):
        self.transport = transport
        self._factory = factory or (lambda user_id, assignment_id, t: DesignLogger(user_id, assignment_id, t))
        self._current: Optional[DesignLogger] = None

    @property
    def current(self) -> Optional[DesignLogger]:
        return self._current

    async def acquire(self, user_id: int, assignment_id: int) -> DesignLogger:
        current = self._current
        leftover: list = []
        if current is not None and current.state is SessionState.ENDED:
            # Ended by end_session() or on_unload(); a new entry needs a fresh logger.
            # Events from a failed final flush ride along with it.
            leftover = current.buffer.drain()
            current = self._current = None

        if current is not None and (current.user_id, current.assignment_id) == (user_id, assignment_id):
            return current

        if current is not None:
            logger.info(
                f"Superseding design session {current.design_session_id} "
                f"(user={current.user_id}, assignment={current.assignment_id})"
            )
            await current.end_session()

        self._current = self._factory(user_id, assignment_id, self.transport)
        self._current.buffer.requeue(leftover)
        return self._current

    async def release(self) -> None:
        if self._current is None:
            return
        current, self._current = self._current, None
        await current.end_session()


@asynccontextmanager
async def design_session(
    owner: DesignSessionOwner,
    user_id: int,
    assignment_id: int,
    *,
    agent_config_id: Optional[int] = None,
    version: Optional[int] = None,
) -> AsyncIterator[DesignLogger]:
    """Start a design session for the block and end it (with a final flush) on exit."""
    design_logger = await owner.acquire(user_id, assignment_id)
    design_logger.start_session(agent_config_id=agent_config_id, version=version)
    try:
        yield design_logger
    finally:
        await owner.release()
