"""Correlation ID middleware for request tracing."""

import uuid
from typing import Callable

import logfire
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a correlation ID.

    An incoming ``X-Correlation-ID`` header is reused, otherwise a new one
    is generated. The ID is stored on ``request.state``, attached to a
    Logfire span around the request and echoed in the response header.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Correlation-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(self.header_name.lower()) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id

        with logfire.span(
            "request {method} {path}",
            method=request.method,
            path=request.url.path,
            correlation_id=correlation_id,
        ):
            response = await call_next(request)

        response.headers[self.header_name] = correlation_id
        return response
