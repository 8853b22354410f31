"""
What: Invocation adapter tests, end to end through a FastAPI application.
Why: Every event must produce exactly one well-formed HTTP response.
"""

import asyncio
import base64
import json

import pytest

from conftest import PNG_MAGIC, make_alb_event, make_v1_event, make_v2_event
from lambda_listener.core.adapter import InvocationAdapter
from lambda_listener.core.asgi import AsgiHandler
from lambda_listener.models.context import LambdaContext
from lambda_listener.models.http import FrameworkResponse


@pytest.fixture
def adapter(app):
    return InvocationAdapter(AsgiHandler(app))


class TestConcreteScenarios:
    @pytest.mark.asyncio
    async def test_hello_world(self):
        seen = []

        async def handler(request):
            seen.append(request)
            return FrameworkResponse(
                status=200, headers=[("content-type", "text/plain")], body=b"hello world"
            )

        event = {
            "httpMethod": "GET",
            "path": "/hello",
            "queryStringParameters": {"name": "world"},
            "headers": {"accept": "text/plain"},
            "body": None,
            "isBase64Encoded": False,
        }

        result = await InvocationAdapter(handler)(event)

        assert result["statusCode"] == 200
        assert result["headers"] == {"content-type": "text/plain"}
        assert result["body"] == "hello world"
        assert result["isBase64Encoded"] is False
        assert seen[0].query_string == b"name=world"
        assert seen[0].headers == [("accept", "text/plain")]

    @pytest.mark.asyncio
    async def test_binary_png(self):
        async def handler(request):
            return FrameworkResponse(
                status=200, headers=[("content-type", "image/png")], body=PNG_MAGIC
            )

        result = await InvocationAdapter(handler)(make_v1_event())

        assert result["isBase64Encoded"] is True
        assert result["body"] == base64.b64encode(PNG_MAGIC).decode("ascii")


class TestThroughFastAPI:
    @pytest.mark.asyncio
    async def test_v1_get(self, adapter):
        result = await adapter(make_v1_event(queryStringParameters={"name": "lambda"}))

        assert result["statusCode"] == 200
        assert result["body"] == "hello lambda"
        assert result["isBase64Encoded"] is False
        assert result["multiValueHeaders"]["content-type"] == ["text/plain; charset=utf-8"]

    @pytest.mark.asyncio
    async def test_v1_post_with_base64_body(self, adapter):
        payload = "héllo wörld".encode("utf-8")
        event = make_v1_event(
            httpMethod="POST",
            path="/echo",
            headers={"Content-Type": "text/plain", "Accept": "b"},
            multiValueHeaders={"Accept": ["a", "b"]},
            multiValueQueryStringParameters={"tag": ["x", "y"]},
            body=base64.b64encode(payload).decode(),
            isBase64Encoded=True,
        )

        result = await adapter(event)
        data = json.loads(result["body"])

        assert result["statusCode"] == 200
        assert data["method"] == "POST"
        assert data["body"] == "héllo wörld"
        assert data["accept"] == ["a", "b"]
        assert data["query"] == [["tag", "x"], ["tag", "y"]]
        assert data["client"] == "203.0.113.7"

    @pytest.mark.asyncio
    async def test_binary_response(self, adapter):
        result = await adapter(make_v1_event(path="/image"))

        assert result["isBase64Encoded"] is True
        assert base64.b64decode(result["body"]) == PNG_MAGIC

    @pytest.mark.asyncio
    async def test_not_found_is_passed_through(self, adapter):
        result = await adapter(make_v1_event(path="/missing"))
        assert result["statusCode"] == 404

    @pytest.mark.asyncio
    async def test_v2_cookies(self, adapter):
        event = make_v2_event(rawPath="/cookies", cookies=["c1=v1", "c2=v2"])

        result = await adapter(event)

        assert result["statusCode"] == 200
        assert json.loads(result["body"]) == {"received": {"c1": "v1", "c2": "v2"}}
        assert len(result["cookies"]) == 2
        assert result["cookies"][0].startswith("session=abc")
        assert result["cookies"][1].startswith("theme=dark")
        assert "set-cookie" not in {name.lower() for name in result["headers"]}

    @pytest.mark.asyncio
    async def test_alb_multi_value_request_gets_multi_value_response(self, adapter):
        event = make_alb_event(
            multiValueHeaders={"host": ["alb.example.com"]},
            multiValueQueryStringParameters={"name": ["alb"]},
            headers=None,
            queryStringParameters=None,
        )

        result = await adapter(event)

        assert result["statusCode"] == 200
        assert result["statusDescription"] == "200 OK"
        assert result["body"] == "hello alb"
        assert "multiValueHeaders" in result
        assert "headers" not in result

    @pytest.mark.asyncio
    async def test_context_is_passed_through(self, adapter):
        context = LambdaContext(aws_request_id="req-123")

        result = await adapter(make_v1_event(path="/context"), context)

        assert json.loads(result["body"]) == {"request_id": "req-123", "stage": "prod"}


class TestMalformedInputIsolation:
    @pytest.mark.asyncio
    async def test_invalid_base64_body_is_400(self, adapter):
        event = make_v1_event(httpMethod="POST", path="/echo", body="@@not base64@@", isBase64Encoded=True)

        result = await adapter(event)
        data = json.loads(result["body"])

        assert result["statusCode"] == 400
        assert result["headers"]["content-type"] == "application/json"
        assert data["message"] == "Bad Request"
        assert data["error"] == "invalid_encoding"

    @pytest.mark.asyncio
    async def test_invalid_method_is_400(self, adapter):
        result = await adapter(make_v1_event(httpMethod="GE T"))

        assert result["statusCode"] == 400
        assert json.loads(result["body"])["error"] == "invalid_method"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("event", [None, "not an event", {}, {"httpMethod": 7}])
    async def test_unrecognized_event_is_400(self, adapter, event):
        result = await adapter(event)

        assert result["statusCode"] == 400
        assert json.loads(result["body"])["error"] == "invalid_event"

    @pytest.mark.asyncio
    async def test_v2_error_uses_v2_shape(self, adapter):
        event = make_v2_event(body="!!!", isBase64Encoded=True)

        result = await adapter(event)

        assert result["statusCode"] == 400
        assert "multiValueHeaders" not in result


class TestHandlerFailureIsolation:
    @pytest.mark.asyncio
    async def test_raising_handler_is_500_without_details(self):
        async def handler(request):
            raise KeyError("secret-table-name")

        result = await InvocationAdapter(handler)(make_v1_event())

        assert result["statusCode"] == 500
        assert json.loads(result["body"]) == {"message": "Internal Server Error"}
        assert "secret-table-name" not in result["body"]

    @pytest.mark.asyncio
    async def test_asgi_app_failing_before_response_is_500(self):
        async def broken_app(scope, receive, send):
            raise RuntimeError("boom")

        result = await InvocationAdapter(AsgiHandler(broken_app))(make_v1_event())

        assert result["statusCode"] == 500

    @pytest.mark.asyncio
    async def test_framework_500_is_passed_through(self, adapter):
        result = await adapter(make_v1_event(path="/boom"))

        assert result["statusCode"] == 500
        assert "hunter2" not in result["body"]

    @pytest.mark.asyncio
    async def test_unreadable_body_is_500(self):
        async def broken_stream():
            yield b"partial"
            raise IOError("disk gone")

        async def handler(request):
            return FrameworkResponse(status=200, body=broken_stream())

        result = await InvocationAdapter(handler)(make_v1_event())

        assert result["statusCode"] == 500
        assert json.loads(result["body"]) == {
            "message": "Internal Server Error",
            "error": "body_read_failure",
        }

    @pytest.mark.asyncio
    async def test_invalid_status_is_500(self):
        async def handler(request):
            return FrameworkResponse(status=42)

        result = await InvocationAdapter(handler)(make_v1_event())

        assert result["statusCode"] == 500
        assert json.loads(result["body"])["error"] == "invalid_status"

    @pytest.mark.asyncio
    async def test_invalid_status_from_asgi_app_does_not_leave_app_running(self):
        exited = []
        never = asyncio.Event()

        async def bad_status_app(scope, receive, send):
            try:
                await send({"type": "http.response.start", "status": 42, "headers": []})
                await never.wait()
            finally:
                exited.append(True)

        result = await InvocationAdapter(AsgiHandler(bad_status_app))(make_v1_event())

        assert result["statusCode"] == 500
        assert json.loads(result["body"])["error"] == "invalid_status"
        assert exited == [True]

    @pytest.mark.asyncio
    async def test_handler_returning_garbage_is_500(self):
        async def handler(request):
            return None

        result = await InvocationAdapter(handler)(make_v1_event())

        assert result["statusCode"] == 500


@pytest.mark.asyncio
async def test_adapter_is_stateless_across_invocations(adapter):
    bad = await adapter(make_v1_event(body="%%", isBase64Encoded=True, httpMethod="POST", path="/echo"))
    good = await adapter(make_v1_event())
    again = await adapter(make_v1_event())

    assert bad["statusCode"] == 400
    assert good == again
    assert good["statusCode"] == 200
