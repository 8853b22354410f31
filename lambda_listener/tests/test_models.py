import time

import pytest
from pydantic import ValidationError

from lambda_listener.models import (
    ALBTargetGroupEvent,
    ALBTargetGroupResponse,
    APIGatewayProxyEvent,
    APIGatewayProxyEventV2,
    APIGatewayProxyResponseV2,
    FrameworkResponse,
    LambdaContext,
)


class TestInboundModels:
    """Type validation tests for the proxy event models."""

    def test_v1_requires_http_method(self):
        with pytest.raises(ValidationError) as exc_info:
            APIGatewayProxyEvent(path="/test")

        missing = {e["loc"][0] for e in exc_info.value.errors() if e["type"] == "missing"}
        assert "httpMethod" in missing

    def test_v1_rejects_non_string_header_values(self):
        with pytest.raises(ValidationError):
            APIGatewayProxyEvent(httpMethod="GET", headers={"Content-Type": 123})

    def test_v1_ignores_unknown_fields(self):
        event = APIGatewayProxyEvent(httpMethod="GET", somethingNew={"a": 1})
        assert event.path == "/"
        assert event.isBase64Encoded is False

    def test_v2_requires_request_context_method(self):
        with pytest.raises(ValidationError):
            APIGatewayProxyEventV2(version="2.0", requestContext={"http": {}})

    def test_v2_keeps_unknown_request_context_fields(self):
        event = APIGatewayProxyEventV2(
            requestContext={"http": {"method": "GET"}, "accountId": "123456789012"}
        )
        assert event.requestContext.http.method == "GET"
        assert event.requestContext.model_extra == {"accountId": "123456789012"}

    def test_alb_requires_request_context(self):
        with pytest.raises(ValidationError):
            ALBTargetGroupEvent(httpMethod="GET")


class TestOutboundModels:
    def test_v2_response_without_cookies_omits_field(self):
        dumped = APIGatewayProxyResponseV2(statusCode=204).model_dump(exclude_none=True)
        assert dumped == {"statusCode": 204, "headers": {}, "body": "", "isBase64Encoded": False}

    def test_alb_response_requires_status_description(self):
        with pytest.raises(ValidationError):
            ALBTargetGroupResponse(statusCode=200)


class TestLambdaContext:
    def test_remaining_time(self):
        deadline = int(time.time() * 1000) + 60_000
        context = LambdaContext(aws_request_id="req-1", deadline_ms=deadline)

        remaining = context.get_remaining_time_in_millis()

        assert 0 < remaining <= 60_000

    def test_remaining_time_never_negative(self):
        context = LambdaContext(aws_request_id="req-1", deadline_ms=1)
        assert context.get_remaining_time_in_millis() == 0

    def test_no_deadline(self):
        assert LambdaContext(aws_request_id="req-1").get_remaining_time_in_millis() == 0


def test_framework_response_header_lookup_is_case_insensitive():
    response = FrameworkResponse(status=200, headers=[("Content-Type", "text/html")])

    assert response.header("content-type") == "text/html"
    assert response.header("x-missing") is None


def test_package_re_exports():
    from lambda_listener import InvocationAdapter, LambdaListener, make_lambda_handler

    assert LambdaListener.__name__ == "LambdaListener"
    assert InvocationAdapter.__name__ == "InvocationAdapter"
    assert callable(make_lambda_handler)
