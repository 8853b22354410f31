"""
Response translation.

Drains the application's response into an OutgoingEvent and renders that
event in the shape the originating integration expects.
"""

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Tuple

from ..exceptions import BodyReadFailure, InvalidStatus
from ..models.aws import (
    ALBTargetGroupResponse,
    APIGatewayProxyResponse,
    APIGatewayProxyResponseV2,
)
from ..models.events import OutgoingEvent, RequestOrigin
from ..models.http import FrameworkResponse
from .encoding import encode, is_binary

logger = logging.getLogger("lambda_listener.response_translator")


async def read_body(response: FrameworkResponse) -> bytes:
    """
    Drain the response body to completion.

    Raises:
        BodyReadFailure: the stream failed or yielded something other than bytes
    """
    body = response.body
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)

    chunks = []
    try:
        async for chunk in body:
            if not isinstance(chunk, (bytes, bytearray, memoryview)):
                raise BodyReadFailure(
                    f"Response body yielded {type(chunk).__name__}, expected bytes"
                )
            chunks.append(bytes(chunk))
    except BodyReadFailure:
        raise
    except Exception as e:
        raise BodyReadFailure(f"Failed to read response body: {e}", cause=e) from e
    return b"".join(chunks)


async def to_outgoing_event(response: FrameworkResponse) -> OutgoingEvent:
    """
    Convert the application's response into an OutgoingEvent.

    Raises:
        InvalidStatus: status is not a three digit integer
        BodyReadFailure: the body could not be drained
    """
    status = response.status
    if isinstance(status, bool) or not isinstance(status, int) or not 100 <= status <= 999:
        raise InvalidStatus(status)

    body = await read_body(response)
    binary = is_binary(
        response.header("content-type"), body, content_encoding=response.header("content-encoding")
    )
    return OutgoingEvent(
        status_code=status,
        headers=[(str(name), str(value)) for name, value in response.headers],
        body=encode(body, binary),
        is_base64_encoded=binary,
    )


def group_headers(headers: List[Tuple[str, str]]) -> Dict[str, List[str]]:
    """Group values per header name, keeping the first spelling of each name."""
    grouped: Dict[str, List[str]] = {}
    spelling: Dict[str, str] = {}
    for name, value in headers:
        key = spelling.setdefault(name.lower(), name)
        grouped.setdefault(key, []).append(value)
    return grouped


def _status_description(status_code: int) -> str:
    try:
        return f"{status_code} {HTTPStatus(status_code).phrase}"
    except ValueError:
        return str(status_code)


def render_outgoing_event(
    event: OutgoingEvent,
    origin: RequestOrigin = RequestOrigin.API_GATEWAY_V1,
    multi_value_headers: bool = False,
) -> Dict[str, Any]:
    """
    Split the unified headers back into the integration's response schema.

    Args:
        event: the translated response
        origin: integration that delivered the request
        multi_value_headers: whether the request used multiValueHeaders (ALB only)
    """
    grouped = group_headers(event.headers)

    if origin is RequestOrigin.API_GATEWAY_V2:
        cookies = [value for name, value in event.headers if name.lower() == "set-cookie"]
        model: Any = APIGatewayProxyResponseV2(
            statusCode=event.status_code,
            headers={
                name: ", ".join(values)
                for name, values in grouped.items()
                if name.lower() != "set-cookie"
            },
            cookies=cookies or None,
            body=event.body,
            isBase64Encoded=event.is_base64_encoded,
        )
    elif origin is RequestOrigin.ALB:
        model = ALBTargetGroupResponse(
            statusCode=event.status_code,
            statusDescription=_status_description(event.status_code),
            headers=None
            if multi_value_headers
            else {name: values[-1] for name, values in grouped.items()},
            multiValueHeaders=grouped if multi_value_headers else None,
            body=event.body,
            isBase64Encoded=event.is_base64_encoded,
        )
    else:
        # API Gateway merges both maps; a pair present in both is kept once.
        model = APIGatewayProxyResponse(
            statusCode=event.status_code,
            headers={name: values[-1] for name, values in grouped.items()},
            multiValueHeaders=grouped,
            body=event.body,
            isBase64Encoded=event.is_base64_encoded,
        )

    return model.model_dump(exclude_none=True)
