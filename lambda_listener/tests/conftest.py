import os
from typing import Any, Dict

import pytest
from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

# ListenerConfig is read at import time; never pick up a real runtime.
os.environ.pop("AWS_LAMBDA_RUNTIME_API", None)

PNG_MAGIC = bytes([0x89, 0x50, 0x4E, 0x47])


def make_v1_event(**overrides: Any) -> Dict[str, Any]:
    """API Gateway REST API proxy event with sensible defaults."""
    event: Dict[str, Any] = {
        "resource": "/{proxy+}",
        "path": "/hello",
        "httpMethod": "GET",
        "headers": {"accept": "text/plain"},
        "multiValueHeaders": {"accept": ["text/plain"]},
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
        "pathParameters": None,
        "stageVariables": None,
        "requestContext": {
            "requestId": "c6af9ac6-7b61-11e6-9a41-93e8deadbeef",
            "stage": "prod",
            "identity": {"sourceIp": "203.0.113.7"},
        },
        "body": None,
        "isBase64Encoded": False,
    }
    event.update(overrides)
    return event


def make_v2_event(**overrides: Any) -> Dict[str, Any]:
    """API Gateway HTTP API (payload 2.0) event."""
    event: Dict[str, Any] = {
        "version": "2.0",
        "routeKey": "$default",
        "rawPath": "/hello",
        "rawQueryString": "",
        "headers": {
            "host": "abc123.execute-api.us-east-1.amazonaws.com",
            "x-forwarded-proto": "https",
            "x-forwarded-port": "443",
        },
        "requestContext": {
            "http": {"method": "GET", "path": "/hello", "sourceIp": "203.0.113.7"},
            "requestId": "JKJaXmPLvHcESHA=",
            "stage": "$default",
        },
        "isBase64Encoded": False,
    }
    event.update(overrides)
    return event


def make_alb_event(**overrides: Any) -> Dict[str, Any]:
    """Application Load Balancer target group event."""
    event: Dict[str, Any] = {
        "requestContext": {
            "elb": {
                "targetGroupArn": "arn:aws:elasticloadbalancing:us-east-1:123456789012:targetgroup/lambda/abc"
            }
        },
        "httpMethod": "GET",
        "path": "/hello",
        "queryStringParameters": {},
        "headers": {"host": "lambda-alb-123.us-east-1.elb.amazonaws.com"},
        "body": "",
        "isBase64Encoded": False,
    }
    event.update(overrides)
    return event


def create_test_app(calls=None) -> FastAPI:
    app = FastAPI()
    calls = calls if calls is not None else []

    @app.get("/hello")
    async def hello(name: str = "world"):
        return PlainTextResponse(f"hello {name}")

    @app.api_route("/echo", methods=["GET", "POST", "PUT"])
    async def echo(request: Request):
        body = await request.body()
        return {
            "method": request.method,
            "path": request.url.path,
            "query": list(request.query_params.multi_items()),
            "accept": request.headers.getlist("accept"),
            "body": body.decode("utf-8", "replace"),
            "length": len(body),
            "scheme": request.url.scheme,
            "client": request.client.host if request.client else None,
        }

    @app.get("/image")
    async def image():
        return Response(content=PNG_MAGIC, media_type="image/png")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    @app.get("/stream")
    async def stream():
        async def chunks():
            for part in (b"one,", b"two,", b"three"):
                yield part

        return StreamingResponse(chunks(), media_type="text/plain")

    @app.get("/cookies")
    async def cookies(request: Request, response: Response):
        response.set_cookie("session", "abc")
        response.set_cookie("theme", "dark")
        return {"received": dict(request.cookies)}

    @app.get("/background")
    async def background(tasks: BackgroundTasks):
        tasks.add_task(calls.append, "background-ran")
        return {"ok": True}

    @app.get("/context")
    async def context(request: Request):
        lambda_context = request.scope.get("aws.context")
        event = request.scope.get("aws.event") or {}
        return {
            "request_id": getattr(lambda_context, "aws_request_id", None),
            "stage": (event.get("requestContext") or {}).get("stage"),
        }

    return app


@pytest.fixture
def background_calls():
    return []


@pytest.fixture
def app(background_calls):
    return create_test_app(background_calls)
