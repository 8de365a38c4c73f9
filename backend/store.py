"""
In-memory design event store shared across all routes.

Stands in for the persistence collaborator: one append-only log per
(user, assignment) pair, plus an index by agentConfigId for the read paths.
Rows are never updated or deleted.

Events logged before the first save carry no agentConfigId. Once any event of
the same design session arrives with one, those earlier events are indexed
under that config too (as copies stamped with the id), so the config view and
its analytics see the whole design session.
"""

import logging
from typing import Iterable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class IngestResult(BaseModel):
    logged: int
    duplicates: int


class EventLogStore:
    def __init__(self):
        self._logs: dict[tuple[int, int], list] = {}
        self._by_config: dict[int, list] = {}
        # Dedupe keys live as long as the store; clear() is the only reset.
        self._seen: set[tuple[str, str, int]] = set()
        self._session_config: dict[tuple[str, str], int] = {}
        self._unassigned: dict[tuple[str, str], list] = {}
        self._next_id = 1

    def append_batch(self, events: Iterable, ip_address: Optional[str] = None) -> IngestResult:
        """
        Append a batch in arrival order. Events carrying a client sequence are
        skipped if their (sessionId, designSessionId, sequence) was already
        ingested, which absorbs batches retried after a lost response.
        """
        logged = 0
        duplicates = 0
        for event in events:
            key = event.dedupe_key
            if key is not None and key in self._seen:
                duplicates += 1
                continue

            update = {"id": self._next_id}
            if ip_address and event.ip_address is None:
                update["ip_address"] = ip_address
            row = event.model_copy(update=update)
            self._next_id += 1

            self._logs.setdefault((row.user_id, row.assignment_id), []).append(row)
            self._index_by_config(row)
            if key is not None:
                self._seen.add(key)
            logged += 1

        if duplicates:
            logger.info(f"Skipped {duplicates} already-ingested design events")
        return IngestResult(logged=logged, duplicates=duplicates)

    def _index_by_config(self, row) -> None:
        design_key = (row.session_id, row.design_session_id)
        if row.agent_config_id is None:
            config_id = self._session_config.get(design_key)
            if config_id is None:
                self._unassigned.setdefault(design_key, []).append(row)
                return
            row = row.model_copy(update={"agent_config_id": config_id})
        else:
            self._session_config[design_key] = row.agent_config_id
            config_log = self._by_config.setdefault(row.agent_config_id, [])
            for pending in self._unassigned.pop(design_key, []):
                config_log.append(pending.model_copy(update={"agent_config_id": row.agent_config_id}))

        self._by_config.setdefault(row.agent_config_id, []).append(row)

    def has_config(self, agent_config_id: int) -> bool:
        return agent_config_id in self._by_config

    def events_for_config(self, agent_config_id: int) -> list:
        return list(self._by_config.get(agent_config_id, []))

    def events_for_user(self, user_id: int, assignment_id: int) -> list:
        return list(self._logs.get((user_id, assignment_id), []))

    def events_for_assignment(self, assignment_id: int) -> list:
        """Config-indexed events of an assignment (events never tied to a config are left out)."""
        rows = []
        for log in self._by_config.values():
            rows.extend(e for e in log if e.assignment_id == assignment_id)
        return rows

    def clear(self) -> None:
        self._logs.clear()
        self._by_config.clear()
        self._seen.clear()
        self._session_config.clear()
        self._unassigned.clear()
        self._next_id = 1


event_store = EventLogStore()
