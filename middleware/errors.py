"""Re-executing exception handler for non-development environments"""
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logging import get_logger

logger = get_logger(__name__)


class ExceptionHandlerMiddleware:
    """
    Turn unhandled faults into the error page.

    Sits outside the step pipeline. When the rest of the app raises before a
    response has started, the request is dispatched again as `GET error_path`
    through the same inner stack, so the pipeline steps run for the error
    page too, and the resulting response is sent with status 500. Request
    state (e.g. the correlation ID) is shared with the failed attempt.

    Faults after the response has started, and faults while rendering the
    error page itself, are re-raised.
    """

    def __init__(self, app: ASGIApp, error_path: str = "/error"):
        self.app = app
        self.error_path = error_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            logger.error(
                f"Unhandled exception for {scope.get('method')} {scope.get('path')}: {exc!r}; "
                f"re-executing {self.error_path}"
            )
            await self.app(self._error_scope(scope), receive, self._send_as_server_error(send))

    def _error_scope(self, scope: Scope) -> Scope:
        error_scope = dict(scope)
        error_scope.update(
            method="GET",
            path=self.error_path,
            raw_path=self.error_path.encode("latin-1"),
            query_string=b"",
        )
        # Same dict, so request.state written by outer middleware stays visible
        error_scope["state"] = scope.setdefault("state", {})
        return error_scope

    @staticmethod
    def _send_as_server_error(send: Send) -> Send:
        async def send_500(message: Message) -> None:
            if message["type"] == "http.response.start":
                message = {**message, "status": 500}
            await send(message)

        return send_500
