"""
Invocation context model.

Mirrors the attributes of the context object the AWS managed Python runtime
passes to handlers, so applications can read either one the same way.
"""

import time
from typing import Any, Dict, Optional

from pydantic import BaseModel


class LambdaContext(BaseModel):
    """Per-invocation metadata delivered by the Lambda Runtime API."""

    aws_request_id: str
    deadline_ms: int = 0
    invoked_function_arn: str = ""
    xray_trace_id: Optional[str] = None
    client_context: Optional[Dict[str, Any]] = None
    identity: Optional[Dict[str, Any]] = None
    function_name: str = ""
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 128
    log_group_name: str = ""
    log_stream_name: str = ""

    def get_remaining_time_in_millis(self) -> int:
        """Milliseconds left before the runtime abandons the invocation."""
        if not self.deadline_ms:
            return 0
        return max(0, self.deadline_ms - int(time.time() * 1000))
