"""
Listener contract and its Lambda implementation.

A listener normally binds a socket and accepts connections. LambdaListener
satisfies the same contract without a socket: bind registers the
application with the Lambda Runtime API and accept drives the invocation
loop for the lifetime of the process. The reported address is a synthetic
sentinel (lambda://<function-name>) because no local address exists.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from starlette.types import ASGIApp

from ..config import ListenerConfig
from ..config import config as default_config
from ..exceptions import FatalError, RegistrationError, RuntimeApiError
from .adapter import InvocationAdapter
from .asgi import AsgiHandler
from .logging_config import flush_log_handlers, setup_logging
from .request_context import clear_request_context, set_request_id, set_trace_id
from .runtime_client import LambdaRuntimeClient, create_runtime_client

logger = logging.getLogger("lambda_listener.listener")

LAMBDA_TRANSPORT = "aws-lambda-runtime-api"


def _is_client_error(error: RuntimeApiError) -> bool:
    return error.status_code is not None and 400 <= error.status_code < 500


@dataclass(frozen=True)
class ListenInfo:
    """Where a listener is reachable."""

    connection: str
    transport: str
    tls: bool = False

    def __str__(self) -> str:
        return self.connection


class Listener(ABC):
    """A thing that produces a stream of requests needing responses."""

    @abstractmethod
    async def bind(self, app: ASGIApp) -> None:
        """Attach the application; called exactly once."""
        pass

    @abstractmethod
    async def accept(self) -> None:
        """Serve requests until the process ends."""
        pass

    @abstractmethod
    def info(self) -> List[ListenInfo]:
        pass

    async def listen(self, app: ASGIApp) -> None:
        await self.bind(app)
        await self.accept()


class LambdaListener(Listener):
    """
    Listener connected to an AWS Lambda execution environment.

    Usage:
        listener = LambdaListener()
        listener.run(app)
    """

    def __init__(
        self,
        config: Optional[ListenerConfig] = None,
        runtime_client: Optional[LambdaRuntimeClient] = None,
    ):
        self.config = config if config is not None else default_config
        self.runtime_client = runtime_client
        self.adapter: Optional[InvocationAdapter] = None
        self._info: Optional[ListenInfo] = None

    async def bind(self, app: ASGIApp) -> None:
        """
        Register the application as the per-invocation handler.

        Raises:
            RegistrationError: already bound, or no Runtime API is available
        """
        if self.adapter is not None:
            raise RegistrationError("bind should only be called once")

        if self.runtime_client is None:
            self.runtime_client = create_runtime_client(self.config)
        if not callable(app):
            raise RegistrationError(f"Application is not an ASGI callable: {app!r}")

        self.adapter = InvocationAdapter(AsgiHandler(app))
        function_name = self.config.AWS_LAMBDA_FUNCTION_NAME or "function"
        self._info = ListenInfo(connection=f"lambda://{function_name}", transport=LAMBDA_TRANSPORT)
        logger.info(f"Registered with the Lambda runtime as {self._info}")

    async def accept(self) -> None:
        """
        Run the invocation loop.

        Only returns by raising: RuntimeApiError when the Runtime API fails.
        """
        if self.adapter is None or self.runtime_client is None:
            raise RegistrationError("bind must be called before accept")

        while True:
            await self.serve_one()

    async def serve_one(self) -> None:
        """Fetch, handle and answer exactly one invocation."""
        if self.adapter is None or self.runtime_client is None:
            raise RegistrationError("bind must be called before serve_one")

        invocation = await self.runtime_client.next_invocation()
        request_id = invocation.request_id
        set_request_id(request_id)
        if invocation.context.xray_trace_id:
            set_trace_id(invocation.context.xray_trace_id)

        try:
            try:
                payload = await self.adapter(invocation.event, invocation.context)
            except Exception as e:
                # The adapter answers every event; reaching here is a bug.
                logger.error("Invocation adapter failed", exc_info=True)
                await self.runtime_client.post_error(request_id, type(e).__name__, str(e))
            else:
                await self._post_response(request_id, payload)
        finally:
            clear_request_context()
            flush_log_handlers()

    async def _post_response(self, request_id: str, payload: Dict[str, Any]) -> None:
        """
        Post the result, falling back to the error endpoint when it is rejected.

        A 4xx only concerns this invocation (e.g. 413 for an oversized payload).
        Transport failures and 5xx still raise RuntimeApiError.
        """
        try:
            await self.runtime_client.post_response(request_id, payload)
        except RuntimeApiError as e:
            if not _is_client_error(e):
                raise
            logger.error(
                f"Runtime API rejected the response: {e}",
                extra={"status_code": e.status_code},
            )
            try:
                await self.runtime_client.post_error(request_id, "ResponseRejected", e.detail)
            except RuntimeApiError as report_error:
                if not _is_client_error(report_error):
                    raise
                logger.error(
                    f"Runtime API rejected the error report: {report_error}",
                    extra={"status_code": report_error.status_code},
                )

    def info(self) -> List[ListenInfo]:
        return [self._info] if self._info is not None else []

    def __str__(self) -> str:
        if self._info is None:
            return "Not listening. Did you forget to call `Listener.bind`?"
        return str(self._info)

    def __repr__(self) -> str:
        return f"LambdaListener(info={self._info!r}, bound={self.adapter is not None})"

    def run(self, app: ASGIApp, configure_logging: bool = True) -> None:
        """
        Blocking entry point for custom runtimes (bootstrap scripts).

        Args:
            app: ASGI application
            configure_logging: load LOG_CONFIG_PATH before serving

        Raises:
            FatalError: registration or the Runtime API failed
        """
        if configure_logging:
            setup_logging(self.config.LOG_CONFIG_PATH, self.config.LOG_LEVEL)
        asyncio.run(self._run(app))

    async def _report_init_error(self, error: FatalError) -> None:
        try:
            await self.runtime_client.post_init_error(type(error).__name__, str(error))
        except RuntimeApiError:
            logger.warning("Failed to report the init error to the runtime", exc_info=True)

    async def _run(self, app: ASGIApp) -> None:
        try:
            await self.listen(app)
        except RuntimeApiError:
            logger.critical("Lambda Runtime API failure", exc_info=True)
            raise
        except FatalError as e:
            logger.critical("Could not register with the Lambda runtime", exc_info=True)
            if self.runtime_client is not None:
                await self._report_init_error(e)
            raise
        finally:
            if self.runtime_client is not None:
                await self.runtime_client.aclose()


def make_lambda_handler(app: ASGIApp) -> Callable[[Dict[str, Any], Any], Dict[str, Any]]:
    """
    Build a handler for the AWS managed Python runtime.

    Usage:
        handler = make_lambda_handler(app)

    Each call runs on a fresh event loop; nothing is shared between invocations.
    """
    adapter = InvocationAdapter(AsgiHandler(app))

    def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        request_id = getattr(context, "aws_request_id", None)
        if request_id:
            set_request_id(request_id)
        try:
            return asyncio.run(adapter(event, context))
        finally:
            clear_request_context()
            flush_log_handlers()

    return handler
