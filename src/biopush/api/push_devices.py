"""
Push Protocol API Controller

Device-facing endpoints for eSSL / ADMS push devices. All three paths share one
dispatcher; the protocol phase is decided by HTTP method and query parameters only.

Endpoints:
- OPTIONS /, /iclock/cdata           - CORS preflight
- GET     /, /iclock/cdata, /iclock/getrequest - Handshake (with SN) or liveness check
- POST    /, /iclock/cdata           - Data upload (table=ATTLOG, USER, USERPIC)

References:
- push_protocol_service.py
"""

from flask import Blueprint, request, jsonify, Response

from biopush.services.push_protocol_service import PushReply, push_protocol_service
from biopush.shared.logger import app_logger


# ============================================================================
# BLUEPRINT SETUP
# ============================================================================

push_devices_bp = Blueprint('push_devices', __name__)

# Methods the protocol does not use are routed here too so they get the
# protocol's plain-text 404 instead of a 405
PUSH_METHODS = ['GET', 'POST', 'OPTIONS', 'PUT', 'PATCH', 'DELETE']


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _create_text_response(reply: PushReply) -> Response:
    """
    Create plain text response with the protocol's headers.

    Device firmware parses the body byte-for-byte ("OK", "OK: 3"), so nothing
    is appended to it.
    """
    response = Response(reply.body, status=reply.status, mimetype=reply.content_type)
    response.headers.update(reply.headers)
    return response


# ============================================================================
# PUSH PROTOCOL ENDPOINTS (Device-facing)
# ============================================================================

@push_devices_bp.route('/', methods=PUSH_METHODS)
@push_devices_bp.route('/iclock/cdata', methods=PUSH_METHODS)
@push_devices_bp.route('/iclock/getrequest', methods=PUSH_METHODS)
def device_push():
    """
    Single entry point for every device request.

    Query Parameters:
        SN / sn (str): Device serial number
        table (str, optional): ATTLOG, USER or USERPIC for data pushes
        PIN (str, optional): Biometric ID for USERPIC

    Example Request (ATTLOG):
        POST /iclock/cdata?SN=ABC123&table=ATTLOG
        Content-Type: text/plain

        123\t2024-01-10 09:00:00\t1
        124\t2024-01-10 09:05:00\t0

    Example Response:
        OK: 1
    """
    body = request.get_data() if request.method == 'POST' else b''

    reply = push_protocol_service.handle(request.method, request.args.to_dict(), body)

    return _create_text_response(reply)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@push_devices_bp.app_errorhandler(404)
def not_found(error):
    """Unknown paths get the protocol's plain-text 404; management API gets JSON"""
    app_logger.warning(f"[PUSH] 404 Not Found: {request.url}")

    if request.path.startswith('/api/'):
        return jsonify({
            "success": False,
            "error": "Endpoint not found"
        }), 404

    return _create_text_response(PushReply.not_found())


@push_devices_bp.app_errorhandler(500)
def internal_error(error):
    """Unhandled failures are the only data-push outcome reported as non-200"""
    app_logger.error(f"[PUSH] 500 Internal Error: {error}")

    if request.path.startswith('/api/'):
        return jsonify({
            "success": False,
            "error": "Internal server error"
        }), 500

    return _create_text_response(PushReply(500, "InternalError"))
