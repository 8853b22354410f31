"""
Framework-side request and response types.

FrameworkRequest maps onto an ASGI HTTP scope; FrameworkResponse carries
what the application sent back, with the body either buffered or streamed.
"""

from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Awaitable, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import unquote

ResponseBody = Union[bytes, AsyncIterable[bytes]]


def _encode_header(text: str) -> bytes:
    # ASGI headers are latin-1; proxies may still deliver UTF-8 values.
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError:
        return text.encode("utf-8")


@dataclass
class FrameworkRequest:
    """An HTTP request ready to be handed to the application."""

    method: str
    path: str
    query_string: bytes = b""
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    scheme: str = "https"
    server: Optional[Tuple[str, int]] = None
    client: Optional[Tuple[str, int]] = None
    root_path: str = ""
    extensions: Dict[str, Any] = field(default_factory=dict)

    def to_scope(self) -> Dict[str, Any]:
        """Build the ASGI HTTP connection scope."""
        scope: Dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.3"},
            "http_version": "1.1",
            "method": self.method,
            "scheme": self.scheme,
            "path": unquote(self.path),
            "raw_path": self.path.encode("utf-8"),
            "root_path": self.root_path,
            "query_string": self.query_string,
            "headers": [(_encode_header(name), _encode_header(value)) for name, value in self.headers],
            "server": self.server,
            "client": self.client,
        }
        scope.update(self.extensions)
        return scope


@dataclass
class FrameworkResponse:
    """An HTTP response produced by the application."""

    status: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: ResponseBody = b""
    # Releases whatever still produces the body.
    closer: Optional[Callable[[], Awaitable[None]]] = field(default=None, repr=False, compare=False)

    async def aclose(self) -> None:
        if self.closer is not None:
            await self.closer()

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None
