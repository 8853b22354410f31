"""
Core logic package.

Provides the encoding policy, the event translators, the invocation adapter
and the Lambda listener.
"""

from .adapter import InvocationAdapter
from .asgi import AsgiHandler
from .encoding import decode, encode, is_binary
from .listener import LambdaListener, Listener, ListenInfo, make_lambda_handler
from .request_translator import parse_incoming_event, to_framework_request
from .response_translator import render_outgoing_event, to_outgoing_event
from .runtime_client import LambdaRuntimeClient, create_runtime_client

__all__ = [
    "InvocationAdapter",
    "AsgiHandler",
    "decode",
    "encode",
    "is_binary",
    "LambdaListener",
    "Listener",
    "ListenInfo",
    "make_lambda_handler",
    "parse_incoming_event",
    "to_framework_request",
    "render_outgoing_event",
    "to_outgoing_event",
    "LambdaRuntimeClient",
    "create_runtime_client",
]
