"""
An ASGI listener for AWS Lambda execution environments.

Usage:
    from lambda_listener import LambdaListener

    LambdaListener().run(app)
"""

from .core import (
    AsgiHandler,
    InvocationAdapter,
    LambdaListener,
    Listener,
    ListenInfo,
    make_lambda_handler,
)
from .exceptions import ConversionError, FatalError, HandlerFailure, ListenerError

__all__ = [
    "AsgiHandler",
    "InvocationAdapter",
    "LambdaListener",
    "Listener",
    "ListenInfo",
    "make_lambda_handler",
    "ConversionError",
    "FatalError",
    "HandlerFailure",
    "ListenerError",
]
__version__ = "0.1.0"
