"""
Custom exception classes.

Represent errors raised while bridging Lambda invocations and ASGI applications.
"""

from typing import Optional


class ListenerError(Exception):
    """Base exception class for the Lambda listener."""

    pass


# ===========================================
# Conversion errors (recovered into HTTP responses)
# ===========================================


class ConversionError(ListenerError):
    """Raised when an event or response cannot be translated."""

    code = "conversion_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class InvalidEvent(ConversionError):
    """Raised when the inbound event is not a recognizable proxy event."""

    code = "invalid_event"


class InvalidMethod(ConversionError):
    """Raised when the HTTP method is not a valid token."""

    code = "invalid_method"

    def __init__(self, method: object):
        self.method = method
        super().__init__(f"Invalid HTTP method: {method!r}")


class InvalidEncoding(ConversionError):
    """Raised when a body flagged as base64 does not decode."""

    code = "invalid_encoding"


class BodyReadFailure(ConversionError):
    """Raised when the response body stream cannot be drained."""

    code = "body_read_failure"

    def __init__(self, detail: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(detail)


class InvalidStatus(ConversionError):
    """Raised when the application responds with an unusable status code."""

    code = "invalid_status"

    def __init__(self, status: object):
        self.status = status
        super().__init__(f"Invalid HTTP status code: {status!r}")


# ===========================================
# Application errors
# ===========================================


class HandlerFailure(ListenerError):
    """Raised when the application fails without producing a response."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Application handler failed: {cause}")


# ===========================================
# Fatal errors (abort startup / the runtime loop)
# ===========================================


class FatalError(ListenerError):
    """The listener cannot function at all."""

    pass


class RegistrationError(FatalError):
    """Raised when the listener cannot register with the Lambda runtime."""

    pass


class RuntimeApiError(FatalError):
    """Raised when the Lambda Runtime API rejects or fails a call."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.detail = detail
        if status_code is not None:
            super().__init__(f"Runtime API error ({status_code}): {detail}")
        else:
            super().__init__(f"Runtime API error: {detail}")
