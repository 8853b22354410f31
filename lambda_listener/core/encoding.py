"""
Body encoding policy.

Decides whether a body travels as plain text or base64 and performs the
conversion. When there is no definitive signal the body is treated as
binary, so arbitrary payloads are never mangled.
"""

import base64
import binascii
from typing import Optional

from ..exceptions import InvalidEncoding

TEXT_CHARSETS = frozenset({"utf-8", "utf8", "us-ascii", "ascii"})

TEXT_MEDIA_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/javascript",
        "application/ecmascript",
        "application/x-www-form-urlencoded",
        "application/graphql",
        "application/x-ndjson",
        "application/yaml",
        "image/svg+xml",
    }
)


def _parse_content_type(content_type: str):
    media_type, _, params = content_type.partition(";")
    charset = None
    for param in params.split(";"):
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            charset = value.strip().strip('"').lower()
    return media_type.strip().lower(), charset


def _is_text_media_type(media_type: str) -> bool:
    if media_type.startswith("text/"):
        return True
    if media_type.endswith("+json") or media_type.endswith("+xml"):
        return True
    return media_type in TEXT_MEDIA_TYPES


def _is_utf8(body: bytes) -> bool:
    try:
        body.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def is_binary(
    content_type: Optional[str], body: bytes, content_encoding: Optional[str] = None
) -> bool:
    """
    Return True when the body must be base64 encoded.

    Args:
        content_type: Content-Type header value, if any
        body: raw body bytes
        content_encoding: Content-Encoding header value, if any
    """
    if content_encoding and content_encoding.strip().lower() not in ("", "identity"):
        return True

    if not content_type:
        # Nothing to corrupt in an empty body.
        return bool(body)

    media_type, charset = _parse_content_type(content_type)
    if charset is not None:
        if charset not in TEXT_CHARSETS:
            return True
    elif not _is_text_media_type(media_type):
        return True

    return not _is_utf8(body)


def encode(body: bytes, binary: bool) -> str:
    """Encode a body for an outbound event."""
    if binary:
        return base64.b64encode(body).decode("ascii")
    # surrogateescape keeps decode(encode(b)) == b even for non UTF-8 input.
    return body.decode("utf-8", "surrogateescape")


def decode(body: str, binary: bool) -> bytes:
    """
    Decode an inbound event body.

    Raises:
        InvalidEncoding: the body is flagged as base64 but is not valid base64
    """
    if not binary:
        try:
            return body.encode("utf-8", "surrogateescape")
        except UnicodeEncodeError as e:
            raise InvalidEncoding(f"Body is not encodable as UTF-8: {e}") from e
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncoding(f"Body is flagged as base64 but does not decode: {e}") from e
