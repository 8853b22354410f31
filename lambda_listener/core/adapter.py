"""
Invocation adapter.

Drives one Lambda invocation through the application:

    Idle -> Translating Request -> Handling -> Translating Response -> Idle

Every path out of the sequence yields exactly one response payload.
Conversion failures and application failures are turned into HTTP
responses here instead of failing the invocation, which would make the
platform treat a client-input problem as a function error.
"""

import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from ..exceptions import ConversionError
from ..models.events import IncomingEvent, OutgoingEvent, RequestOrigin
from ..models.http import FrameworkRequest, FrameworkResponse
from .request_translator import detect_origin, parse_incoming_event, to_framework_request
from .response_translator import render_outgoing_event, to_outgoing_event

logger = logging.getLogger("lambda_listener.adapter")

ApplicationHandler = Callable[[FrameworkRequest], Awaitable[FrameworkResponse]]


class InvocationState(str, Enum):
    IDLE = "idle"
    TRANSLATING_REQUEST = "translating_request"
    HANDLING = "handling"
    TRANSLATING_RESPONSE = "translating_response"


def error_event(status_code: int, content: Dict[str, Any]) -> OutgoingEvent:
    """Build a JSON diagnostic response."""
    return OutgoingEvent(
        status_code=status_code,
        headers=[("content-type", "application/json")],
        body=json.dumps(content),
        is_base64_encoded=False,
    )


class InvocationAdapter:
    """
    Per-invocation orchestration between a Lambda event and the application.

    The adapter keeps no state between calls; the same instance may serve
    any number of sequential invocations.
    """

    def __init__(self, handler: ApplicationHandler):
        self.handler = handler

    async def __call__(self, event: Any, context: Any = None) -> Dict[str, Any]:
        origin = detect_origin(event) if isinstance(event, dict) else RequestOrigin.API_GATEWAY_V1
        incoming: Optional[IncomingEvent] = None

        self._transition(InvocationState.TRANSLATING_REQUEST)
        try:
            incoming = parse_incoming_event(event)
            request = to_framework_request(incoming, context=context, raw_event=event)
        except ConversionError as e:
            logger.warning(
                f"Rejecting malformed event: {e}",
                extra={"error": e.code, "origin": origin.value},
            )
            outgoing = error_event(
                400, {"message": "Bad Request", "error": e.code, "detail": e.detail}
            )
        else:
            outgoing = await self._respond(request)

        self._transition(InvocationState.IDLE)
        multi_value = incoming.multi_value_headers if incoming is not None else False
        return render_outgoing_event(outgoing, origin, multi_value)

    async def _respond(self, request: FrameworkRequest) -> OutgoingEvent:
        self._transition(InvocationState.HANDLING)
        try:
            response = await self.handler(request)
        except Exception:
            logger.error(
                "Application handler failed",
                exc_info=True,
                extra={"path": request.path, "method": request.method},
            )
            return error_event(500, {"message": "Internal Server Error"})

        self._transition(InvocationState.TRANSLATING_RESPONSE)
        try:
            outgoing = await to_outgoing_event(response)
        except ConversionError as e:
            logger.error(
                f"Failed to translate application response: {e}",
                exc_info=True,
                extra={"error": e.code, "path": request.path, "method": request.method},
            )
            return error_event(500, {"message": "Internal Server Error", "error": e.code})
        except Exception:
            # Handlers that bypass AsgiHandler may return anything.
            logger.error(
                "Application returned an unusable response",
                exc_info=True,
                extra={"path": request.path, "method": request.method},
            )
            return error_event(500, {"message": "Internal Server Error"})
        finally:
            if isinstance(response, FrameworkResponse):
                await response.aclose()

        logger.info(
            f"{request.method} {request.path} {outgoing.status_code}",
            extra={
                "status_code": outgoing.status_code,
                "is_base64_encoded": outgoing.is_base64_encoded,
            },
        )
        return outgoing

    @staticmethod
    def _transition(state: InvocationState) -> None:
        logger.debug(f"Invocation state -> {state.value}", extra={"state": state.value})
