"""Correlation ID middleware for request tracing"""
import uuid
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Context variable to store correlation ID for the current request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Assign a correlation ID to every request.

    - Accepts the ID from the configured request header when the client sends one
    - Otherwise generates a uuid4
    - Stores it in a context variable and on `request.state.request_id`
    - Echoes it on the response under the same header
    """

    def __init__(self, app, header_name: str = "X-Correlation-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(self.header_name)

        if not correlation_id:
            correlation_id = str(uuid.uuid4())

        correlation_id_var.set(correlation_id)
        # Exception handlers outside this middleware read it from request state
        request.state.request_id = correlation_id

        response = await call_next(request)

        response.headers[self.header_name] = correlation_id

        return response


def get_correlation_id() -> str:
    """Get the correlation ID for the current request"""
    return correlation_id_var.get()
