"""
ASGI application handler.

Runs one HTTP cycle of an ASGI application for a FrameworkRequest. The
response is returned as soon as the application starts it; the body is
streamed through a queue that lives for a single invocation.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

from starlette.types import ASGIApp, Message

from ..exceptions import HandlerFailure
from ..models.http import FrameworkRequest, FrameworkResponse

logger = logging.getLogger("lambda_listener.asgi")

_END = object()


class AsgiHandler:
    """
    The "handle(Request) -> Response" capability over an ASGI application.

    Usage:
        handler = AsgiHandler(app)
        response = await handler(request)
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, request: FrameworkRequest) -> FrameworkResponse:
        return await self.handle(request)

    async def handle(self, request: FrameworkRequest) -> FrameworkResponse:
        cycle = _HttpCycle(self.app, request)
        return await cycle.run()


class _HttpCycle:
    """State of a single request/response exchange with the application."""

    def __init__(self, app: ASGIApp, request: FrameworkRequest):
        self.app = app
        self.request = request
        self.request_sent = False
        self.response_complete = asyncio.Event()
        self.body_queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self.started: "asyncio.Future[Message]" = asyncio.get_running_loop().create_future()
        self.task: Optional["asyncio.Task[None]"] = None

    async def run(self) -> FrameworkResponse:
        self.task = asyncio.create_task(self._run_app())
        # Raises the application's exception if it failed before responding.
        message = await self.started
        headers = [
            (name.decode("latin-1"), value.decode("latin-1"))
            for name, value in message.get("headers", [])
        ]
        return FrameworkResponse(
            status=message["status"], headers=headers, body=self._stream_body(), closer=self.aclose
        )

    async def aclose(self) -> None:
        """
        Make sure the application task does not outlive the invocation.

        A completed response still gets its background work awaited; an
        unfinished one is abandoned and the task cancelled.
        """
        if self.task is None or self.task.done():
            return
        if not self.response_complete.is_set():
            self.task.cancel()
        try:
            await self.task
        except asyncio.CancelledError:
            if not self.task.cancelled():
                raise

    async def _run_app(self) -> None:
        try:
            await self.app(self.request.to_scope(), self.receive, self.send)
        except Exception as e:
            if not self.started.done():
                self.started.set_exception(HandlerFailure(e))
            elif not self.response_complete.is_set():
                await self.body_queue.put(e)
            else:
                # Response already delivered; frameworks re-raise after sending a 500.
                logger.warning(
                    "ASGI application raised after completing the response",
                    exc_info=True,
                    extra={"path": self.request.path, "method": self.request.method},
                )
        else:
            if not self.started.done():
                self.started.set_exception(
                    HandlerFailure(RuntimeError("ASGI application returned without starting a response"))
                )
            elif not self.response_complete.is_set():
                await self.body_queue.put(_END)
        finally:
            self.response_complete.set()

    async def receive(self) -> Message:
        if not self.request_sent:
            self.request_sent = True
            return {"type": "http.request", "body": self.request.body, "more_body": False}
        await self.response_complete.wait()
        return {"type": "http.disconnect"}

    async def send(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            if self.started.done():
                raise RuntimeError("http.response.start sent twice")
            self.started.set_result(message)
        elif message_type == "http.response.body":
            if not self.started.done():
                raise RuntimeError("http.response.body sent before http.response.start")
            if self.response_complete.is_set():
                raise RuntimeError("http.response.body sent after the response completed")
            body = message.get("body", b"")
            if body:
                await self.body_queue.put(body)
            if not message.get("more_body", False):
                await self.body_queue.put(_END)
                self.response_complete.set()
        else:
            logger.debug("Ignoring unsupported ASGI message", extra={"type": message_type})

    async def _stream_body(self) -> AsyncIterator[bytes]:
        while True:
            item = await self.body_queue.get()
            if item is _END:
                break
            if isinstance(item, BaseException):
                raise item
            yield item
        # Background work scheduled by the app must finish inside the invocation.
        if self.task is not None:
            await self.task

