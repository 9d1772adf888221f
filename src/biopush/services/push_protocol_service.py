"""
Push Protocol Service for eSSL / ADMS biometric devices

Devices talk to the server with plain-text requests keyed by query parameters:

1. GET  ?SN=...              handshake / heartbeat          -> "OK"
2. POST ?SN=...&table=ATTLOG attendance logs (tab separated) -> "OK: <saved>"
3. POST ?SN=...&table=USER   user roster                     -> "OK: <created>"
4. POST ?SN=...&table=USERPIC&PIN=... enrollment photo       -> "OK"

The reply text is what the firmware uses to decide whether to advance its log
pointer, so every data push is acknowledged unless the serial number is missing.
Unknown devices, unknown users and failed inserts are logged, never reported to the
device as errors.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from biopush.services.attendance_ingest_service import (
    AttendanceIngestService,
    attendance_ingest_service,
)
from biopush.services.device_resolver import DeviceIdentityResolver, device_resolver
from biopush.services.enrollment_service import EnrollmentService, enrollment_service
from biopush.shared.logger import app_logger


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

ACK = "OK"
LIVENESS_TEXT = "BIOMETRIC_PUSH_SERVICE_ALIVE"
MISSING_SN_TEXT = "BadRequest: No SN"
NOT_FOUND_TEXT = "NotFound"


class PushPhase:
    """Protocol phase of an inbound request"""
    PREFLIGHT = "preflight"
    HANDSHAKE = "handshake"
    LIVENESS = "liveness"
    DATA_PUSH = "data_push"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"


class PushTable:
    ATTLOG = "ATTLOG"
    USER = "USER"
    USERPIC = "USERPIC"


# ============================================================================
# REQUEST / REPLY
# ============================================================================


@dataclass
class PushRequest:
    """Inbound device request reduced to what the protocol looks at"""

    method: str
    serial_number: Optional[str] = None  # Lowercased
    table: Optional[str] = None
    pin: Optional[str] = None

    @classmethod
    def from_query(cls, method: str, query_params: Dict[str, Any]) -> "PushRequest":
        """
        Build a request from HTTP method and query parameters.

        Devices send the serial number as either SN or sn.
        """
        raw_sn = query_params.get("SN") or query_params.get("sn")
        return cls(
            method=method.upper(),
            serial_number=raw_sn.lower() if raw_sn else None,
            table=query_params.get("table"),
            pin=query_params.get("PIN"),
        )

    @property
    def phase(self) -> str:
        if self.method == "OPTIONS":
            return PushPhase.PREFLIGHT
        if self.method == "GET":
            return PushPhase.HANDSHAKE if self.serial_number else PushPhase.LIVENESS
        if self.method == "POST":
            return PushPhase.DATA_PUSH if self.serial_number else PushPhase.BAD_REQUEST
        return PushPhase.NOT_FOUND


@dataclass
class PushReply:
    """Plain-text reply sent back to the device"""

    status: int
    body: str = ""
    content_type: str = "text/plain"
    headers: Dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    @classmethod
    def ack(cls) -> "PushReply":
        return cls(200, ACK)

    @classmethod
    def ack_count(cls, count: int) -> "PushReply":
        return cls(200, f"{ACK}: {count}")

    @classmethod
    def preflight(cls) -> "PushReply":
        return cls(204, "")

    @classmethod
    def liveness(cls) -> "PushReply":
        return cls(200, LIVENESS_TEXT)

    @classmethod
    def missing_serial(cls) -> "PushReply":
        return cls(400, MISSING_SN_TEXT)

    @classmethod
    def not_found(cls) -> "PushReply":
        return cls(404, NOT_FOUND_TEXT)

    @property
    def is_acknowledgement(self) -> bool:
        return self.status == 200 and self.body.startswith(ACK)


# ============================================================================
# PUSH PROTOCOL SERVICE
# ============================================================================


class PushProtocolService:
    """Dispatches device requests to the resolver and ingestors"""

    def __init__(
        self,
        resolver: DeviceIdentityResolver,
        attendance: AttendanceIngestService,
        enrollment: EnrollmentService,
    ):
        self.resolver = resolver
        self.attendance = attendance
        self.enrollment = enrollment

    def handle(self, method: str, query_params: Dict[str, Any], body: bytes = b"") -> PushReply:
        """Route one inbound request to its protocol phase"""
        request = PushRequest.from_query(method, query_params)
        phase = request.phase

        app_logger.info(
            f"[PUSH] {request.method} | SN: {request.serial_number} | Table: {request.table}"
        )

        if phase == PushPhase.PREFLIGHT:
            return PushReply.preflight()
        if phase == PushPhase.LIVENESS:
            return PushReply.liveness()
        if phase == PushPhase.HANDSHAKE:
            return self.handle_handshake(request)
        if phase == PushPhase.BAD_REQUEST:
            app_logger.warning("[PUSH] Data push without serial number rejected")
            return PushReply.missing_serial()
        if phase == PushPhase.DATA_PUSH:
            return self.handle_data_push(request, body)
        return PushReply.not_found()

    def handle_handshake(self, request: PushRequest) -> PushReply:
        """Heartbeat: refresh liveness, always acknowledge"""
        self.resolver.record_heartbeat(request.serial_number)
        return PushReply.ack()

    def handle_data_push(self, request: PushRequest, body: bytes) -> PushReply:
        """
        Process a data push for a registered device.

        Unregistered devices still get "OK" so they stop retransmitting.
        """
        app_logger.info(
            f"[PUSH] Received {request.table} push from SN={request.serial_number}, "
            f"payload length: {len(body)}"
        )

        device = self.resolver.resolve(request.serial_number)
        if not device:
            app_logger.error(f"[PUSH] Unknown device SN={request.serial_number}, acknowledging anyway")
            return PushReply.ack()

        if request.table == PushTable.ATTLOG:
            result = self.attendance.ingest(_decode(body), device)
            reply = PushReply.ack_count(result.success_count)
        elif request.table == PushTable.USER:
            created_count = self.enrollment.sync_roster(_decode(body), device)
            reply = PushReply.ack_count(created_count)
        elif request.table == PushTable.USERPIC:
            # The whole body is the image
            self.enrollment.store_user_photo(request.pin, body)
            reply = PushReply.ack()
        else:
            app_logger.warning(f"[PUSH] Unhandled table type: {request.table}")
            reply = PushReply.ack()

        # Once per request, after every line has been processed
        self.resolver.refresh_liveness(device)
        return reply


def _decode(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


# ============================================================================
# GLOBAL SERVICE INSTANCE
# ============================================================================

push_protocol_service = PushProtocolService(
    device_resolver, attendance_ingest_service, enrollment_service
)
