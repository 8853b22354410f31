"""
Request translation.

Turns a raw Lambda proxy event into an IncomingEvent, then into the
FrameworkRequest handed to the application. Purely structural: the only
failures are malformed input.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode

from pydantic import ValidationError

from ..exceptions import InvalidEvent, InvalidMethod
from ..models.aws import ALBTargetGroupEvent, APIGatewayProxyEvent, APIGatewayProxyEventV2
from ..models.events import IncomingEvent, RequestOrigin
from ..models.http import FrameworkRequest
from .encoding import decode

logger = logging.getLogger("lambda_listener.request_translator")

# RFC 7230 token
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

DEFAULT_PORTS = {"http": 80, "https": 443}


def detect_origin(raw: Dict[str, Any]) -> RequestOrigin:
    """Work out which integration produced the event."""
    if raw.get("version") == "2.0":
        return RequestOrigin.API_GATEWAY_V2
    request_context = raw.get("requestContext")
    if isinstance(request_context, dict) and "elb" in request_context:
        return RequestOrigin.ALB
    return RequestOrigin.API_GATEWAY_V1


def merge_headers(
    single: Optional[Dict[str, str]], multi: Optional[Dict[str, List[str]]]
) -> List[Tuple[str, str]]:
    """
    Unify the single and multi-value header maps into one ordered list.

    multiValueHeaders wins; names only present in headers are appended.
    """
    merged: List[Tuple[str, str]] = []
    seen = set()
    for name, values in (multi or {}).items():
        seen.add(name.lower())
        for value in values:
            merged.append((name, value))
    for name, value in (single or {}).items():
        if name.lower() not in seen:
            merged.append((name, value))
    return merged


def merge_query(
    single: Optional[Dict[str, str]], multi: Optional[Dict[str, List[str]]]
) -> Dict[str, List[str]]:
    query: Dict[str, List[str]] = {key: list(values) for key, values in (multi or {}).items()}
    for key, value in (single or {}).items():
        query.setdefault(key, [value])
    return query


def parse_incoming_event(raw: Any) -> IncomingEvent:
    """
    Validate a raw event and unify it into an IncomingEvent.

    Raises:
        InvalidEvent: the event is not a supported proxy event
    """
    if not isinstance(raw, dict):
        raise InvalidEvent(f"Event must be a JSON object, got {type(raw).__name__}")

    origin = detect_origin(raw)
    try:
        if origin is RequestOrigin.API_GATEWAY_V2:
            v2 = APIGatewayProxyEventV2.model_validate(raw)
            headers = list((v2.headers or {}).items())
            if v2.cookies:
                headers.append(("cookie", "; ".join(v2.cookies)))
            return IncomingEvent(
                origin=origin,
                method=v2.requestContext.http.method,
                path=v2.rawPath or "/",
                query={key: [value] for key, value in (v2.queryStringParameters or {}).items()},
                raw_query_string=v2.rawQueryString,
                headers=headers,
                body=v2.body,
                is_base64_encoded=v2.isBase64Encoded,
                request_context=raw.get("requestContext"),
            )

        model = ALBTargetGroupEvent if origin is RequestOrigin.ALB else APIGatewayProxyEvent
        v1 = model.model_validate(raw)
    except ValidationError as e:
        raise InvalidEvent(f"Unrecognized proxy event: {e.error_count()} validation error(s)") from e

    return IncomingEvent(
        origin=origin,
        method=v1.httpMethod,
        path=v1.path or "/",
        query=merge_query(v1.queryStringParameters, v1.multiValueQueryStringParameters),
        headers=merge_headers(v1.headers, v1.multiValueHeaders),
        body=v1.body,
        is_base64_encoded=v1.isBase64Encoded,
        multi_value_headers=v1.multiValueHeaders is not None,
        request_context=raw.get("requestContext"),
    )


def build_query_string(event: IncomingEvent) -> bytes:
    """Serialize the query as repeated key=value pairs, order kept per key."""
    if event.raw_query_string is not None:
        return event.raw_query_string.encode("utf-8")
    pairs = [(key, value) for key, values in event.query.items() for value in values]
    return urlencode(pairs, quote_via=quote).encode("ascii")


def _server_and_scheme(event: IncomingEvent) -> Tuple[Tuple[str, int], str]:
    scheme = (event.header("x-forwarded-proto") or "https").split(",")[0].strip().lower()
    host = event.header("host") or "lambda"
    hostname, _, port = host.partition(":")
    forwarded_port = event.header("x-forwarded-port")
    if port.isdigit():
        server_port = int(port)
    elif forwarded_port and forwarded_port.strip().isdigit():
        server_port = int(forwarded_port.strip())
    else:
        server_port = DEFAULT_PORTS.get(scheme, 443)
    return (hostname, server_port), scheme


def _client(event: IncomingEvent) -> Optional[Tuple[str, int]]:
    forwarded_for = event.header("x-forwarded-for")
    if forwarded_for:
        return (forwarded_for.split(",")[0].strip(), 0)
    request_context = event.request_context or {}
    for section in ("identity", "http"):
        values = request_context.get(section)
        if isinstance(values, dict) and isinstance(values.get("sourceIp"), str):
            return (values["sourceIp"], 0)
    return None


def to_framework_request(
    event: IncomingEvent, context: Any = None, raw_event: Optional[Dict[str, Any]] = None
) -> FrameworkRequest:
    """
    Convert an IncomingEvent into the request handed to the application.

    Raises:
        InvalidMethod: the method is not an HTTP token
        InvalidEncoding: the body does not match its isBase64Encoded flag
    """
    if not event.method or not _METHOD_RE.fullmatch(event.method):
        raise InvalidMethod(event.method)

    body = decode(event.body, event.is_base64_encoded) if event.body is not None else b""
    server, scheme = _server_and_scheme(event)

    # ASGI requires lower-case header names.
    headers = [(name.lower(), value) for name, value in event.headers]

    return FrameworkRequest(
        method=event.method,
        path=event.path if event.path.startswith("/") else f"/{event.path}",
        query_string=build_query_string(event),
        headers=headers,
        body=body,
        scheme=scheme,
        server=server,
        client=_client(event),
        extensions={"aws.event": raw_event, "aws.context": context},
    )
