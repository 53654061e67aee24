"""Ordered middleware pipeline with a shared per-request exchange"""
from collections.abc import Awaitable, Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.exceptions import ContinuationReusedError, PipelineFrozenError
from core.logging import get_logger
from middleware.exchange import Exchange

logger = get_logger(__name__)

Continuation = Callable[[], Awaitable[None]]
Step = Callable[[Exchange, Continuation], Awaitable[None]]
Terminal = Callable[[Exchange], Awaitable[None]]


def _step_name(step: Step) -> str:
    return getattr(step, "__qualname__", None) or repr(step)


class Pipeline:
    """
    Statically ordered chain of middleware steps.

    Each step receives the exchange and a continuation for the rest of the
    chain. Work before `await call_next()` runs in registration order, work
    after it runs in reverse order. A step that never calls its continuation
    short-circuits the chain, so later steps and the terminal handler are
    skipped.

    Steps are registered during startup only. The chain freezes on the first
    handled request (or an explicit freeze()) and rejects registration after.
    """

    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: list[Step] = []
        self._frozen = False
        for step in steps:
            self.register(step)

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, step: Step) -> Step:
        """Append a step; usable as a decorator"""
        if self._frozen:
            raise PipelineFrozenError(
                f"Cannot register '{_step_name(step)}': pipeline is already serving requests"
            )
        self._steps.append(step)
        logger.info(f"Registered pipeline step #{len(self._steps)}: {_step_name(step)}")
        return step

    def freeze(self) -> None:
        if not self._frozen:
            self._frozen = True
            logger.info(f"Pipeline frozen with {len(self._steps)} step(s)")

    async def handle(self, request: Request, terminal: Terminal) -> Exchange:
        """Run the chain for one request and return its finished exchange"""
        self.freeze()
        exchange = Exchange(request=request)
        try:
            await self._dispatch(0, exchange, terminal)
        except Exception:
            logger.exception(
                f"Pipeline aborted for {request.method} {request.url.path}"
            )
            raise
        return exchange

    async def _dispatch(self, index: int, exchange: Exchange, terminal: Terminal) -> None:
        if index == len(self._steps):
            await terminal(exchange)
            return

        step = self._steps[index]
        invoked = False

        async def call_next() -> None:
            nonlocal invoked
            if invoked:
                raise ContinuationReusedError(
                    f"Step '{_step_name(step)}' invoked its continuation twice"
                )
            invoked = True
            await self._dispatch(index + 1, exchange, terminal)

        await step(exchange, call_next)

        if not invoked:
            logger.debug(
                f"Pipeline short-circuited by {_step_name(step)} "
                f"(status={exchange.response.status_code})"
            )


class PipelineMiddleware(BaseHTTPMiddleware):
    """
    Run a Pipeline for every HTTP request.

    The terminal continuation hands the request to the rest of the ASGI app
    (routing) and adopts its response into the exchange. The exchange is also
    exposed to route handlers as `request.state.exchange`.
    """

    def __init__(self, app, pipeline: Pipeline):
        super().__init__(app)
        self.pipeline = pipeline

    async def dispatch(self, request: Request, call_next) -> Response:
        async def terminal(exchange: Exchange) -> None:
            exchange.request.state.exchange = exchange
            response = await call_next(exchange.request)
            exchange.response.adopt(response)

        exchange = await self.pipeline.handle(request, terminal)
        return exchange.response.render()
