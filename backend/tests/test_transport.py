import asyncio
import json

import httpx
import pytest

from models.event import parse_event
from telemetry.capture import DesignLogger
from telemetry.transport import MODE_HEADER, HttpTransport, TransportFailure


def _event(sequence: int = 1):
    return parse_event({
        "eventType": "field_focus",
        "eventCategory": "field",
        "timestamp": "2026-01-01T10:00:00Z",
        "sessionId": "client-7",
        "designSessionId": "design-1",
        "userId": 7,
        "assignmentId": 3,
        "sequence": sequence,
        "fieldName": "agentName",
    })


class TestHttpTransport:
    def setup_method(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.raise_error = False
        self.invalid_url = False

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error:
            raise httpx.ConnectError("connection refused", request=request)
        if self.invalid_url:
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")
        return httpx.Response(self.status_code, json={"logged": 1, "duplicates": 0})

    def _transport(self) -> HttpTransport:
        mock = httpx.MockTransport(self._handler)
        return HttpTransport(
            "http://ingest.test/api/",
            client=httpx.AsyncClient(transport=mock),
            sync_client=httpx.Client(transport=mock),
        )

    def test_confirmed_delivery_posts_batch(self):
        transport = self._transport()
        asyncio.run(transport.deliver([_event(1), _event(2)]))

        request = self.requests[0]
        assert str(request.url) == "http://ingest.test/api/agent-design-logs/batch"
        assert request.headers[MODE_HEADER] == "confirmed"
        body = json.loads(request.content)
        assert [e["sequence"] for e in body["events"]] == [1, 2]
        assert body["events"][0]["eventType"] == "field_focus"

    def test_non_success_status_raises(self):
        self.status_code = 503
        transport = self._transport()
        with pytest.raises(TransportFailure) as exc_info:
            asyncio.run(transport.deliver([_event()]))
        assert exc_info.value.status_code == 503

    def test_network_error_raises(self):
        self.raise_error = True
        transport = self._transport()
        with pytest.raises(TransportFailure):
            asyncio.run(transport.deliver([_event()]))

    def test_best_effort_marks_mode(self):
        transport = self._transport()
        transport.send_best_effort([_event()])
        assert self.requests[0].headers[MODE_HEADER] == "best_effort"

    def test_best_effort_never_raises(self):
        self.raise_error = True
        transport = self._transport()
        transport.send_best_effort([_event()])
        assert len(self.requests) == 1

    def test_best_effort_skips_empty_batch(self):
        transport = self._transport()
        transport.send_best_effort([])
        assert self.requests == []

    def test_invalid_url_becomes_transport_failure(self):
        self.invalid_url = True
        transport = self._transport()
        with pytest.raises(TransportFailure) as exc_info:
            asyncio.run(transport.deliver([_event()]))
        assert "InvalidURL" in str(exc_info.value)

    def test_best_effort_swallows_invalid_url(self):
        self.invalid_url = True
        transport = self._transport()
        transport.send_best_effort([_event()])
        assert len(self.requests) == 1

    def test_logger_requeues_batch_on_invalid_url(self):
        self.invalid_url = True
        design_logger = DesignLogger(7, 3, self._transport(), session_id="client-7")

        async def scenario():
            design_logger.start_session()
            for _ in range(5):
                design_logger.log_field_focus("agentName")
            task = design_logger.flush()
            await task
            design_logger._stop_timer()
            return task

        task = asyncio.run(scenario())

        assert task.exception() is None
        assert [e.sequence for e in design_logger.buffer.peek()] == list(range(1, 7))
