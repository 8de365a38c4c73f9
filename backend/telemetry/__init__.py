from telemetry.buffer import BatchBuffer
from telemetry.capture import DesignLogger, SessionStats
from telemetry.client_info import ClientInfo
from telemetry.owner import DesignSessionOwner, design_session
from telemetry.session import SessionState, SessionTracker
from telemetry.transport import DeliveryMode, DeliveryTransport, HttpTransport, TransportFailure

__all__ = [
    "BatchBuffer",
    "DesignLogger", "SessionStats",
    "ClientInfo",
    "DesignSessionOwner", "design_session",
    "SessionState", "SessionTracker",
    "DeliveryMode", "DeliveryTransport", "HttpTransport", "TransportFailure",
]
