"""
Inline pipeline steps.

1. Custom header: appends a fixed header to every response.
2. Stash: stores a text value in the exchange scratch space.
3. Echo: copies the stashed value, when present, into a response header.

Headers are always appended. A strict add would fail whenever a header with
the same name already exists.
"""
from core.config import Settings, get_settings
from core.logging import get_logger
from middleware.exchange import Exchange, TextValue
from middleware.pipeline import Continuation, Pipeline, Step

logger = get_logger(__name__)


def custom_header_step(name: str, value: str) -> Step:
    async def add_custom_header(exchange: Exchange, call_next: Continuation) -> None:
        exchange.response.append_header(name, value)
        await call_next()

    return add_custom_header


def stash_step(key: str, value: str) -> Step:
    async def stash_context_item(exchange: Exchange, call_next: Continuation) -> None:
        exchange.items.set(key, TextValue(value))
        await call_next()

    return stash_context_item


def echo_step(key: str, header_name: str) -> Step:
    async def echo_context_item(exchange: Exchange, call_next: Continuation) -> None:
        stored = exchange.items.get_text(key)
        if stored is not None:
            exchange.response.append_header(header_name, stored)
        else:
            logger.debug(f"Context item '{key}' not set; skipping {header_name}")
        await call_next()

    return echo_context_item


def build_pipeline(settings: Settings | None = None) -> Pipeline:
    """Pipeline with the example steps, in their required order"""
    settings = settings or get_settings()
    return Pipeline(
        [
            custom_header_step(settings.custom_header_name, settings.custom_header_value),
            stash_step(settings.context_key, settings.context_value),
            echo_step(settings.context_key, settings.echo_header_name),
        ]
    )
