"""HTTP Strict Transport Security middleware"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# HSTS is never sent for loopback hosts; URL hostnames carry IPv6 without brackets
EXCLUDED_HOSTS = ("localhost", "127.0.0.1", "::1")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add Strict-Transport-Security to HTTPS responses.

    Registered only outside the development environment. Plain HTTP
    responses and loopback hosts are left untouched.
    """

    def __init__(self, app, max_age: int = 30 * 24 * 60 * 60, include_subdomains: bool = False):
        super().__init__(app)
        self.max_age = max_age
        self.include_subdomains = include_subdomains

    def header_value(self) -> str:
        value = f"max-age={self.max_age}"
        if self.include_subdomains:
            value += "; includeSubDomains"
        return value

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if request.url.scheme == "https" and request.url.hostname not in EXCLUDED_HOSTS:
            response.headers["Strict-Transport-Security"] = self.header_value()

        return response
