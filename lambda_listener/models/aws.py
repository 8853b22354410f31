# lambda_listener/models/aws.py

"""
Pydantic models for the AWS Lambda HTTP proxy integrations.

Reference:
- https://docs.aws.amazon.com/apigateway/latest/developerguide/set-up-lambda-proxy-integrations.html
- https://docs.aws.amazon.com/apigateway/latest/developerguide/http-api-develop-integrations-lambda.html
- https://docs.aws.amazon.com/elasticloadbalancing/latest/application/lambda-functions.html

Inbound models validate the raw event; outbound models build the response
payload. Use model_dump(exclude_none=True) to convert to a dict.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ===========================================
# Inbound events
# ===========================================


class APIGatewayProxyEvent(BaseModel):
    """
    AWS API Gateway Proxy Integration (v1, REST API) event.

    requestContext is kept as an opaque mapping.
    """

    resource: Optional[str] = None
    path: str = "/"
    httpMethod: str
    headers: Optional[Dict[str, str]] = None
    multiValueHeaders: Optional[Dict[str, List[str]]] = None
    queryStringParameters: Optional[Dict[str, str]] = None
    multiValueQueryStringParameters: Optional[Dict[str, List[str]]] = None
    pathParameters: Optional[Dict[str, str]] = None
    stageVariables: Optional[Dict[str, str]] = None
    requestContext: Optional[Dict[str, Any]] = None
    body: Optional[str] = None
    isBase64Encoded: bool = False

    model_config = ConfigDict(extra="ignore")


class ApiGatewayV2Http(BaseModel):
    """requestContext.http of a payload 2.0 event."""

    method: str
    path: Optional[str] = None
    protocol: Optional[str] = None
    sourceIp: Optional[str] = None
    userAgent: Optional[str] = None


class ApiGatewayV2RequestContext(BaseModel):
    """API Gateway HTTP API request context."""

    http: ApiGatewayV2Http
    requestId: Optional[str] = None
    stage: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class APIGatewayProxyEventV2(BaseModel):
    """
    AWS API Gateway HTTP API (payload format 2.0) event.

    Multi-value headers arrive comma-joined and cookies arrive separately.
    """

    version: str = "2.0"
    routeKey: Optional[str] = None
    rawPath: str = "/"
    rawQueryString: Optional[str] = None
    cookies: Optional[List[str]] = None
    headers: Optional[Dict[str, str]] = None
    queryStringParameters: Optional[Dict[str, str]] = None
    pathParameters: Optional[Dict[str, str]] = None
    stageVariables: Optional[Dict[str, str]] = None
    requestContext: ApiGatewayV2RequestContext
    body: Optional[str] = None
    isBase64Encoded: bool = False

    model_config = ConfigDict(extra="ignore")


class ALBTargetGroupEvent(BaseModel):
    """Application Load Balancer target group event."""

    path: str = "/"
    httpMethod: str
    headers: Optional[Dict[str, str]] = None
    multiValueHeaders: Optional[Dict[str, List[str]]] = None
    queryStringParameters: Optional[Dict[str, str]] = None
    multiValueQueryStringParameters: Optional[Dict[str, List[str]]] = None
    requestContext: Dict[str, Any]
    body: Optional[str] = None
    isBase64Encoded: bool = False

    model_config = ConfigDict(extra="ignore")


# ===========================================
# Outbound responses
# ===========================================


class APIGatewayProxyResponse(BaseModel):
    """API Gateway v1 proxy response."""

    statusCode: int
    headers: Dict[str, str] = Field(default_factory=dict)
    multiValueHeaders: Dict[str, List[str]] = Field(default_factory=dict)
    body: str = ""
    isBase64Encoded: bool = False


class APIGatewayProxyResponseV2(BaseModel):
    """API Gateway HTTP API (payload format 2.0) response."""

    statusCode: int
    headers: Dict[str, str] = Field(default_factory=dict)
    cookies: Optional[List[str]] = None
    body: str = ""
    isBase64Encoded: bool = False


class ALBTargetGroupResponse(BaseModel):
    """
    Application Load Balancer response.

    Exactly one of headers / multiValueHeaders is set, matching the request.
    """

    statusCode: int
    statusDescription: str
    headers: Optional[Dict[str, str]] = None
    multiValueHeaders: Optional[Dict[str, List[str]]] = None
    body: str = ""
    isBase64Encoded: bool = False
