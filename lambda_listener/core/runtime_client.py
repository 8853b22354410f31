"""
Lambda Runtime API client.

Reference: https://docs.aws.amazon.com/lambda/latest/dg/runtimes-api.html

The runtime registration capability: long-polls for the next invocation and
posts its result back.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config import ListenerConfig
from ..exceptions import RegistrationError, RuntimeApiError
from ..models.context import LambdaContext

logger = logging.getLogger("lambda_listener.runtime_client")

RUNTIME_API_VERSION = "2018-06-01"

HEADER_REQUEST_ID = "lambda-runtime-aws-request-id"
HEADER_DEADLINE_MS = "lambda-runtime-deadline-ms"
HEADER_FUNCTION_ARN = "lambda-runtime-invoked-function-arn"
HEADER_TRACE_ID = "lambda-runtime-trace-id"
HEADER_CLIENT_CONTEXT = "lambda-runtime-client-context"
HEADER_COGNITO_IDENTITY = "lambda-runtime-cognito-identity"
HEADER_ERROR_TYPE = "Lambda-Runtime-Function-Error-Type"


@dataclass
class Invocation:
    """One event delivered by the Runtime API."""

    event: Any
    context: LambdaContext

    @property
    def request_id(self) -> str:
        return self.context.aws_request_id


def _json_header(headers: httpx.Headers, name: str) -> Optional[Dict[str, Any]]:
    raw = headers.get(name)
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring undecodable runtime header", extra={"header": name})
        return None
    return value if isinstance(value, dict) else None


def build_context(headers: httpx.Headers, config: ListenerConfig) -> LambdaContext:
    """
    Build the invocation context from Runtime API headers and function config.

    Raises:
        RuntimeApiError: the request id header is missing
    """
    request_id = headers.get(HEADER_REQUEST_ID)
    if not request_id:
        raise RuntimeApiError("next invocation response has no request id")

    deadline = headers.get(HEADER_DEADLINE_MS, "")
    return LambdaContext(
        aws_request_id=request_id,
        deadline_ms=int(deadline) if deadline.isdigit() else 0,
        invoked_function_arn=headers.get(HEADER_FUNCTION_ARN, ""),
        xray_trace_id=headers.get(HEADER_TRACE_ID),
        client_context=_json_header(headers, HEADER_CLIENT_CONTEXT),
        identity=_json_header(headers, HEADER_COGNITO_IDENTITY),
        function_name=config.AWS_LAMBDA_FUNCTION_NAME,
        function_version=config.AWS_LAMBDA_FUNCTION_VERSION,
        memory_limit_in_mb=config.AWS_LAMBDA_FUNCTION_MEMORY_SIZE,
        log_group_name=config.AWS_LAMBDA_LOG_GROUP_NAME,
        log_stream_name=config.AWS_LAMBDA_LOG_STREAM_NAME,
    )


class LambdaRuntimeClient:
    """
    Thin async wrapper over the Runtime API endpoints.

    Args:
        client: httpx client whose base_url points at /2018-06-01
        config: function configuration copied into every context
    """

    def __init__(self, client: httpx.AsyncClient, config: ListenerConfig):
        self.client = client
        self.config = config

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise RuntimeApiError(f"{method} {url} failed: {e}") from e
        if response.status_code >= 400:
            raise RuntimeApiError(f"{method} {url}: {response.text}", status_code=response.status_code)
        return response

    async def next_invocation(self) -> Invocation:
        """
        Block until the next event is available.

        An event body that is not JSON is delivered as None; the adapter
        answers it with a 400 instead of dropping the invocation.
        """
        response = await self._request("GET", "/runtime/invocation/next")
        context = build_context(response.headers, self.config)
        try:
            event = response.json()
        except ValueError:
            logger.warning(
                "Invocation event is not valid JSON",
                extra={"aws_request_id": context.aws_request_id},
            )
            event = None
        return Invocation(event=event, context=context)

    async def post_response(self, request_id: str, payload: Dict[str, Any]) -> None:
        await self._request("POST", f"/runtime/invocation/{request_id}/response", json=payload)

    async def post_error(self, request_id: str, error_type: str, message: str) -> None:
        await self._request(
            "POST",
            f"/runtime/invocation/{request_id}/error",
            json={"errorType": error_type, "errorMessage": message},
            headers={HEADER_ERROR_TYPE: "Unhandled"},
        )

    async def post_init_error(self, error_type: str, message: str) -> None:
        await self._request(
            "POST",
            "/runtime/init/error",
            json={"errorType": error_type, "errorMessage": message},
            headers={HEADER_ERROR_TYPE: "Unhandled"},
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def create_runtime_client(config: ListenerConfig) -> LambdaRuntimeClient:
    """
    Create a LambdaRuntimeClient from configuration.

    Raises:
        RegistrationError: AWS_LAMBDA_RUNTIME_API is not set
    """
    endpoint = config.AWS_LAMBDA_RUNTIME_API
    if not endpoint:
        raise RegistrationError(
            "AWS_LAMBDA_RUNTIME_API is not set; not running inside a Lambda execution environment"
        )

    client = httpx.AsyncClient(
        base_url=f"http://{endpoint}/{RUNTIME_API_VERSION}",
        # next invocation long-polls until an event arrives
        timeout=httpx.Timeout(None),
        # Avoid leaking HTTP(S)_PROXY into calls to the local Runtime API.
        trust_env=False,
    )
    return LambdaRuntimeClient(client, config)
