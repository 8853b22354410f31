"""
Data model definitions package.

Aggregates Pydantic models and value types for use in other modules.
"""

from .aws import (
    ALBTargetGroupEvent,
    ALBTargetGroupResponse,
    APIGatewayProxyEvent,
    APIGatewayProxyEventV2,
    APIGatewayProxyResponse,
    APIGatewayProxyResponseV2,
)
from .context import LambdaContext
from .events import IncomingEvent, OutgoingEvent, RequestOrigin
from .http import FrameworkRequest, FrameworkResponse

__all__ = [
    "ALBTargetGroupEvent",
    "ALBTargetGroupResponse",
    "APIGatewayProxyEvent",
    "APIGatewayProxyEventV2",
    "APIGatewayProxyResponse",
    "APIGatewayProxyResponseV2",
    "LambdaContext",
    "IncomingEvent",
    "OutgoingEvent",
    "RequestOrigin",
    "FrameworkRequest",
    "FrameworkResponse",
]
