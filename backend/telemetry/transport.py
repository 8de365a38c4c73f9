"""
DeliveryTransport: ships batches to the ingest endpoint.

Two delivery modes:

  deliver(events)            CONFIRMED. Awaited; raises TransportFailure on a
                             network error or non-2xx response so the caller
                             can requeue the batch. At-least-once: a batch
                             reported as failed may still have been persisted.

  send_best_effort(events)   UNCONFIRMED. Used only when the client is going
                             away. Returns nothing and never raises. Events are
                             lost if the process dies before the request
                             completes or if the request fails; there is no
                             retry because there is no later.

Both send the same payload shape: {"events": [DesignEvent, ...]}.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import httpx

import config
from models.event import event_to_wire

logger = logging.getLogger(__name__)


class DeliveryMode(str, Enum):
    CONFIRMED = "confirmed"
    BEST_EFFORT = "best_effort"


class TransportFailure(Exception):
    """A confirmed delivery did not succeed; the batch should be retried."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


MODE_HEADER = "X-Delivery-Mode"

# Anything that can go wrong building or sending a request. InvalidURL is not an
# HTTPError; payload encoding failures surface as TypeError / ValueError.
_SEND_ERRORS = (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError)


def build_payload(events: list) -> dict:
    return {"events": [event_to_wire(e) for e in events]}


def _mode_header(mode: DeliveryMode) -> dict[str, str]:
    return {MODE_HEADER: mode.value}


class DeliveryTransport(ABC):
    @abstractmethod
    async def deliver(self, events: list) -> None:
        """Confirmed delivery. Raises TransportFailure."""

    @abstractmethod
    def send_best_effort(self, events: list) -> None:
        """Unconfirmed delivery. Never raises; loss is accepted."""

    async def aclose(self) -> None:
        return None


class HttpTransport(DeliveryTransport):
    """
    httpx-backed transport.

    No explicit timeout policy: both modes rely on httpx's defaults.
    """

    def __init__(
        self,
        base_url: str = config.INGEST_URL,
        *,
        client: Optional[httpx.AsyncClient] = None,
        sync_client: Optional[httpx.Client] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.url = self.base_url + config.BATCH_ENDPOINT
        self._headers = headers or {}
        self._client = client
        self._owns_client = client is None
        self._sync_client = sync_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self._headers)
        return self._client

    async def deliver(self, events: list) -> None:
        try:
            payload = build_payload(events)
            response = await self._get_client().post(
                self.url, json=payload, headers=_mode_header(DeliveryMode.CONFIRMED)
            )
        except _SEND_ERRORS as e:
            raise TransportFailure(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise TransportFailure(
                f"Ingest returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

    def send_best_effort(self, events: list) -> None:
        if not events:
            return
        try:
            payload = build_payload(events)
            headers = {**self._headers, **_mode_header(DeliveryMode.BEST_EFFORT)}
            if self._sync_client is not None:
                self._sync_client.post(self.url, json=payload, headers=headers)
            else:
                httpx.post(self.url, json=payload, headers=headers)
        except _SEND_ERRORS as e:
            logger.warning(
                f"Best-effort delivery of {len(events)} events failed, dropped: {e}"
            )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
