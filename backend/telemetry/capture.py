"""
DesignLogger: typed event capture for the agent design builder.

One DesignLogger instance owns one design session for one (user, assignment)
pair. Workflow steps call the typed log_* methods; every event is stamped with
session/timing context, queued in a BatchBuffer and shipped by a
DeliveryTransport.

Concurrency model: one asyncio event loop. Queue mutation is synchronous, and
flush() swaps the queue out before it schedules the delivery coroutine, so the
only suspension point in the pipeline is the transport call itself. Flushing
needs a running loop; outside one, events simply stay queued.
"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel

import config
from models.event import EventType, RuleType, variant_for
from models.reflection import ReflectionPromptDefinition, get_reflection_prompt
from models.snapshot import ConfigSnapshot
from telemetry.buffer import BatchBuffer
from telemetry.client_info import ClientInfo, load_session_id
from telemetry.session import SessionState, SessionTracker
from telemetry.transport import DeliveryTransport, TransportFailure

logger = logging.getLogger(__name__)

SnapshotInput = Union[ConfigSnapshot, dict]

_RULE_FIELDS = {"do": "dosRules", "dont": "dontsRules"}


def _clip(text: str, limit: int = config.MAX_VALUE_LENGTH) -> str:
    return text[:limit]


def _count_words(text: str) -> int:
    return len(text.split())


class SessionStats(BaseModel):
    total_time: int
    has_tested_agent: bool
    event_count: int


class DesignLogger:
    def __init__(
        self,
        user_id: int,
        assignment_id: int,
        transport: DeliveryTransport,
        *,
        session_id: Optional[str] = None,
        client_info: Optional[ClientInfo] = None,
        clock: Callable[[], float] = time.time,
        buffer: Optional[BatchBuffer] = None,
        flush_interval_ms: int = config.FLUSH_INTERVAL_MS,
    ):
        self.user_id = user_id
        self.assignment_id = assignment_id
        self.transport = transport
        self.session_id = session_id or load_session_id()
        self.design_session_id = str(uuid.uuid4())
        self.client_info = client_info or ClientInfo()
        self.buffer = buffer if buffer is not None else BatchBuffer()
        self.flush_interval = flush_interval_ms / 1000

        self._clock = clock
        self.tracker = SessionTracker(self.log_event, clock=clock)

        self.agent_config_id: Optional[int] = None
        self.version = 1
        self._sequence = 0
        self._last_test_conversation_id: Optional[int] = None
        self._has_tested_agent = False

        self._timer: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self.tracker.state

    @property
    def current_tab(self) -> str:
        return self.tracker.current_tab

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def start_session(self, agent_config_id: Optional[int] = None, version: Optional[int] = None) -> bool:
        if agent_config_id:
            self.agent_config_id = agent_config_id
        if version:
            self.version = version

        if not self.tracker.start():
            return False
        self._start_timer()
        return True

    async def end_session(self) -> None:
        """Record final tab time, emit design_session_end and flush everything."""
        if not self.tracker.is_open:
            return
        self.tracker.end()
        self._stop_timer()

        task = self.flush(force=True)
        if task is not None:
            await task

    def on_visibility_change(self, hidden: bool) -> None:
        if hidden:
            if self.tracker.pause():
                self.flush(force=True)
        else:
            self.tracker.resume()

    def on_unload(self) -> None:
        """
        The client is going away: close the session and hand whatever is
        queued to the best-effort path. No confirmation, no retry.
        """
        if self.tracker.is_open:
            self.tracker.end()
        self._stop_timer()
        self.transport.send_best_effort(self.buffer.drain())

    def set_agent_config_id(self, agent_config_id: int) -> None:
        self.agent_config_id = agent_config_id

    def set_version(self, version: int) -> None:
        self.version = version

    # ─── Core emit ─────────────────────────────────────────────────────

    def log_event(self, event_type: EventType, **payload: Any):
        """Build, stamp and queue one event. Returns it, or None if the session is closed."""
        if not self.tracker.is_open:
            logger.debug(f"Dropping {EventType(event_type).value}: session is {self.state.value}")
            return None

        self._sequence += 1
        fields: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(self._clock(), tz=timezone.utc),
            "session_id": self.session_id,
            "design_session_id": self.design_session_id,
            "user_id": self.user_id,
            "assignment_id": self.assignment_id,
            "agent_config_id": self.agent_config_id,
            "version": self.version,
            "active_tab": self.tracker.current_tab,
            "total_design_time": self.tracker.elapsed_seconds(),
            "sequence": self._sequence,
            "device_type": self.client_info.device_type,
            "browser_name": self.client_info.browser_name,
            "user_agent": self.client_info.user_agent,
        }
        fields.update(payload)
        event = variant_for(event_type)(**fields)

        if self.buffer.append(event):
            self.flush()
        return event

    # ─── Flush ─────────────────────────────────────────────────────────

    def flush(self, force: bool = False) -> Optional[asyncio.Task]:
        """
        Swap the queue out and schedule its delivery. The swap happens before
        this returns; the returned task only performs the network call.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("flush() called without a running event loop; events stay queued")
            return None

        batch = self.buffer.take(force=force)
        if not batch:
            return None

        task = loop.create_task(self._deliver(batch))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _deliver(self, batch: list) -> None:
        try:
            await self.transport.deliver(batch)
        except TransportFailure as e:
            logger.warning(f"Failed to flush {len(batch)} design events, requeued: {e}")
            self.buffer.requeue(batch)
            return
        except Exception:
            # A logging failure must never reach the workflow.
            logger.exception(f"Unexpected error flushing {len(batch)} design events, requeued")
            self.buffer.requeue(batch)
            return
        logger.debug(f"Flushed {len(batch)} design events")

    async def wait_for_deliveries(self) -> None:
        if self._inflight:
            await asyncio.gather(*list(self._inflight))

    def _start_timer(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; periodic flush disabled")
            return
        self._timer = loop.create_task(self._periodic_flush())

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _periodic_flush(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            self.flush()

    # ─── Tab navigation ────────────────────────────────────────────────

    def switch_tab(self, new_tab: str) -> bool:
        return self.tracker.switch_tab(new_tab)

    # ─── Field interactions ────────────────────────────────────────────

    def log_field_focus(self, field_name: str):
        return self.log_event(EventType.FIELD_FOCUS, field_name=field_name)

    def log_field_blur(self, field_name: str, value: str):
        return self.log_event(
            EventType.FIELD_BLUR,
            field_name=field_name,
            character_count=len(value),
            word_count=_count_words(value),
        )

    def log_field_change(self, field_name: str, previous_value: str, new_value: str, change_type: str = "type"):
        return self.log_event(
            EventType.FIELD_CHANGE,
            field_name=field_name,
            previous_value=_clip(previous_value),
            new_value=_clip(new_value),
            change_type=change_type,
            character_count=len(new_value),
            word_count=_count_words(new_value),
        )

    def log_field_paste(self, field_name: str, pasted_content: str):
        return self.log_event(
            EventType.FIELD_PASTE,
            field_name=field_name,
            new_value=_clip(pasted_content),
            character_count=len(pasted_content),
            word_count=_count_words(pasted_content),
        )

    def log_field_clear(self, field_name: str, previous_value: str):
        return self.log_event(EventType.FIELD_CLEAR, field_name=field_name, previous_value=_clip(previous_value))

    # ─── Templates, roles, suggestions ─────────────────────────────────

    def log_role_selected(self, role_id: str, role_name: Optional[str] = None):
        return self.log_event(EventType.ROLE_SELECTED, role_selected=role_id, template_name=role_name)

    def log_personality_selected(self, personality_id: str, personality_name: Optional[str] = None):
        return self.log_event(
            EventType.PERSONALITY_SELECTED,
            personality_selected=personality_id,
            template_name=personality_name,
        )

    def log_template_viewed(self, template_name: str):
        return self.log_event(EventType.TEMPLATE_VIEWED, template_name=template_name)

    def log_template_applied(self, template_name: str, field_name: Optional[str] = None):
        return self.log_event(EventType.TEMPLATE_APPLIED, template_name=template_name, field_name=field_name)

    def log_template_modified(self, template_name: str, field_name: Optional[str] = None):
        return self.log_event(EventType.TEMPLATE_MODIFIED, template_name=template_name, field_name=field_name)

    def log_suggestion_viewed(self, source: str, field_name: Optional[str] = None):
        return self.log_event(EventType.SUGGESTION_VIEWED, suggestion_source=source, field_name=field_name)

    def log_suggestion_applied(self, source: str, field_name: Optional[str] = None):
        return self.log_event(EventType.SUGGESTION_APPLIED, suggestion_source=source, field_name=field_name)

    # ─── Prompt blocks ─────────────────────────────────────────────────

    def log_prompt_block_selected(self, block_id: str, block_category: str, selected_block_ids: list[str]):
        return self.log_event(
            EventType.PROMPT_BLOCK_SELECTED,
            prompt_block_id=block_id,
            prompt_block_category=block_category,
            selected_block_ids=list(selected_block_ids),
        )

    def log_prompt_block_removed(self, block_id: str, block_category: str, selected_block_ids: list[str]):
        return self.log_event(
            EventType.PROMPT_BLOCK_REMOVED,
            prompt_block_id=block_id,
            prompt_block_category=block_category,
            selected_block_ids=list(selected_block_ids),
        )

    def log_prompt_blocks_reordered(self, selected_block_ids: list[str]):
        return self.log_event(EventType.PROMPT_BLOCKS_REORDERED, selected_block_ids=list(selected_block_ids))

    def log_prompt_block_custom_added(self, custom_text: str):
        return self.log_event(
            EventType.PROMPT_BLOCK_CUSTOM_ADDED,
            new_value=_clip(custom_text),
            character_count=len(custom_text),
            word_count=_count_words(custom_text),
        )

    # ─── Do / don't rules ──────────────────────────────────────────────

    def log_rule_added(self, rule_type: RuleType, content: str):
        return self.log_event(
            EventType.RULE_ADDED, rule_type=rule_type, field_name=_RULE_FIELDS[rule_type], new_value=_clip(content)
        )

    def log_rule_removed(self, rule_type: RuleType, content: str):
        return self.log_event(
            EventType.RULE_REMOVED, rule_type=rule_type, field_name=_RULE_FIELDS[rule_type], previous_value=_clip(content)
        )

    def log_rule_edited(self, rule_type: RuleType, previous_content: str, new_content: str):
        return self.log_event(
            EventType.RULE_EDITED,
            rule_type=rule_type,
            field_name=_RULE_FIELDS[rule_type],
            previous_value=_clip(previous_content),
            new_value=_clip(new_content),
        )

    def log_rule_reordered(self, rule_type: RuleType, rules: list[str]):
        return self.log_event(
            EventType.RULE_REORDERED, rule_type=rule_type, field_name=_RULE_FIELDS[rule_type], rules=list(rules)
        )

    # ─── Test conversations ────────────────────────────────────────────

    def log_test_started(self, conversation_id: int):
        event = self.log_event(EventType.TEST_CONVERSATION_STARTED, test_conversation_id=conversation_id)
        if event is not None:
            self._last_test_conversation_id = conversation_id
            self._has_tested_agent = True
        return event

    def log_test_message_sent(self, conversation_id: int, message_count: int):
        return self.log_event(
            EventType.TEST_MESSAGE_SENT, test_conversation_id=conversation_id, test_message_count=message_count
        )

    def log_test_response_received(self, conversation_id: int, message_count: int):
        return self.log_event(
            EventType.TEST_RESPONSE_RECEIVED, test_conversation_id=conversation_id, test_message_count=message_count
        )

    def log_test_reset(self):
        event = self.log_event(EventType.TEST_CONVERSATION_RESET, test_conversation_id=self._last_test_conversation_id)
        self._last_test_conversation_id = None
        return event

    def log_post_test_edit(self, field_name: str):
        """An edit counts as an iteration only once the agent has been tested."""
        if not self._has_tested_agent:
            return None
        return self.log_event(
            EventType.POST_TEST_EDIT, field_name=field_name, test_conversation_id=self._last_test_conversation_id
        )

    # ─── Reflections ───────────────────────────────────────────────────

    def show_reflection(self, trigger: str) -> Optional[ReflectionPromptDefinition]:
        """Resolve and log a reflection prompt. Unknown triggers show nothing."""
        definition = get_reflection_prompt(trigger)
        if definition is None:
            return None
        self.log_event(
            EventType.REFLECTION_PROMPT_SHOWN,
            reflection_prompt_id=definition.id,
            reflection_prompt_text=definition.prompt,
        )
        return definition

    def log_reflection_dismissed(self, prompt_id: str):
        return self.log_event(EventType.REFLECTION_DISMISSED, reflection_prompt_id=prompt_id)

    def log_reflection_submitted(self, prompt_id: str, response: str):
        definition = get_reflection_prompt(prompt_id)
        return self.log_event(
            EventType.REFLECTION_SUBMITTED,
            reflection_prompt_id=prompt_id,
            reflection_prompt_text=definition.prompt if definition else None,
            reflection_response=response,
        )

    # ─── Saves and submission ──────────────────────────────────────────

    def log_draft_saved(self, snapshot: SnapshotInput):
        return self.log_event(EventType.DRAFT_SAVED, agent_config_snapshot=snapshot)

    def log_submission_attempted(self):
        return self.log_event(EventType.SUBMISSION_ATTEMPTED)

    def log_submission_completed(self, snapshot: SnapshotInput):
        return self.log_event(EventType.SUBMISSION_COMPLETED, agent_config_snapshot=snapshot)

    def log_unsubmit_requested(self):
        return self.log_event(EventType.UNSUBMIT_REQUESTED)

    # ─── Stats ─────────────────────────────────────────────────────────

    def session_stats(self) -> SessionStats:
        return SessionStats(
            total_time=self.tracker.elapsed_seconds(),
            has_tested_agent=self._has_tested_agent,
            event_count=len(self.buffer),
        )
