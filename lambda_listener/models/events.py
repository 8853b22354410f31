"""
Normalized event models.

IncomingEvent and OutgoingEvent are independent of the integration schema:
headers are a single ordered multi-valued list, split again only at egress.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RequestOrigin(str, Enum):
    """Lambda integration that delivered the event."""

    API_GATEWAY_V1 = "api_gateway_v1"
    API_GATEWAY_V2 = "api_gateway_v2"
    ALB = "alb"


class IncomingEvent(BaseModel):
    """
    An inbound proxy event, unified across integrations.

    This model decouples the translators from the raw event schemas.
    """

    origin: RequestOrigin = RequestOrigin.API_GATEWAY_V1
    method: str
    path: str = "/"
    query: Dict[str, List[str]] = Field(default_factory=dict)
    raw_query_string: Optional[str] = None
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    body: Optional[str] = None
    is_base64_encoded: bool = False
    multi_value_headers: bool = False
    request_context: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True)

    def header_values(self, name: str) -> List[str]:
        """All values of a header, in arrival order (case-insensitive name)."""
        lowered = name.lower()
        return [value for key, value in self.headers if key.lower() == lowered]

    def header(self, name: str) -> Optional[str]:
        values = self.header_values(name)
        return values[0] if values else None


class OutgoingEvent(BaseModel):
    """An outbound proxy response before it is rendered for its origin."""

    status_code: int
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    body: str = ""
    is_base64_encoded: bool = False
