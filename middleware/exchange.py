"""
Per-request exchange shared by every pipeline step.

An Exchange bundles the inbound request, a mutable response accumulator and a
request-local scratch space. One exchange is built per request and dropped
once the response has been rendered; nothing here is shared across requests.

Usage:
    async def step(exchange: Exchange, call_next):
        exchange.response.append_header("X-Step", "seen")
        exchange.items.set("user", TextValue("alice"))
        await call_next()
"""
from collections.abc import AsyncIterable, Iterator
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from starlette.background import BackgroundTask
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from core.exceptions import (
    ContextItemTypeError,
    DuplicateHeaderError,
    ResponseBodyLockedError,
)


@dataclass(frozen=True)
class TextValue:
    value: str
    kind: ClassVar[str] = "text"


@dataclass(frozen=True)
class IntValue:
    value: int
    kind: ClassVar[str] = "int"


@dataclass(frozen=True)
class FlagValue:
    value: bool
    kind: ClassVar[str] = "flag"


ContextValue = Union[TextValue, IntValue, FlagValue]

_VALUE_TYPES = (TextValue, IntValue, FlagValue)

# A terminal value for these replaces whatever a step set before call_next
SINGLE_VALUE_HEADERS = frozenset({"content-type", "content-length", "location"})


class ContextItems:
    """
    Request-scoped key/value scratch space.

    Keys are plain strings agreed between cooperating steps. Values are tagged
    (TextValue, IntValue, FlagValue) so readers ask for the kind they expect
    instead of inspecting the stored object. Absent keys read as None.
    """

    def __init__(self):
        self._items: dict[str, ContextValue] = {}

    def set(self, key: str, value: ContextValue) -> None:
        if not isinstance(value, _VALUE_TYPES):
            raise TypeError(
                f"Context item '{key}' must be a TextValue, IntValue or FlagValue, "
                f"got {type(value).__name__}"
            )
        self._items[key] = value

    def get(self, key: str) -> Optional[ContextValue]:
        return self._items.get(key)

    def pop(self, key: str) -> Optional[ContextValue]:
        return self._items.pop(key, None)

    def get_text(self, key: str) -> Optional[str]:
        return self._get_typed(key, TextValue)

    def get_int(self, key: str) -> Optional[int]:
        return self._get_typed(key, IntValue)

    def get_flag(self, key: str) -> Optional[bool]:
        return self._get_typed(key, FlagValue)

    def _get_typed(self, key: str, value_type: type):
        stored = self._items.get(key)
        if stored is None:
            return None
        if not isinstance(stored, value_type):
            raise ContextItemTypeError(key, expected=value_type.kind, actual=stored.kind)
        return stored.value

    def as_dict(self) -> dict[str, object]:
        """Plain snapshot of the stored values, for logging and diagnostics"""
        return {key: stored.value for key, stored in self._items.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class ResponseState:
    """
    Mutable response accumulator.

    Steps adjust status, headers and body here. When the terminal handler runs,
    its response is adopted: status and headers are merged and its body stream
    is kept so it can be forwarded unchanged by render().
    """

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.headers = MutableHeaders()
        self.media_type: Optional[str] = None
        self.background: Optional[BackgroundTask] = None
        self._chunks: list[bytes] = []
        self._stream: Optional[AsyncIterable[bytes]] = None

    def append_header(self, key: str, value: str) -> None:
        """Add a value for `key`, keeping any values already present"""
        self.headers.append(key, value)

    def add_header(self, key: str, value: str) -> None:
        """Strict add: fails when `key` is already present"""
        if key in self.headers:
            raise DuplicateHeaderError(key)
        self.headers.append(key, value)

    def set_header(self, key: str, value: str) -> None:
        """Replace every value of `key` with a single value"""
        self.headers[key] = value

    def remove_header(self, key: str) -> None:
        if key in self.headers:
            del self.headers[key]

    def write(self, data: bytes | str) -> None:
        if self._stream is not None:
            raise ResponseBodyLockedError()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks.append(data)

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def is_streamed(self) -> bool:
        return self._stream is not None

    def adopt(self, response: Response) -> None:
        """
        Merge the terminal handler's response into this accumulator.

        Headers are appended after the ones steps already added, except
        SINGLE_VALUE_HEADERS, where the terminal's value replaces them.
        """
        self.status_code = response.status_code
        self.media_type = response.media_type or self.media_type
        self.background = getattr(response, "background", None)
        for key, value in response.raw_headers:
            name = key.decode("latin-1")
            if name in SINGLE_VALUE_HEADERS:
                self.headers[name] = value.decode("latin-1")
            else:
                self.headers.append(name, value.decode("latin-1"))

        body_iterator = getattr(response, "body_iterator", None)
        if body_iterator is not None:
            self._chunks = []
            self._stream = body_iterator
        else:
            self._chunks = [response.body]

    def render(self) -> Response:
        """Build the outgoing response from the accumulated state"""
        if self._stream is not None:
            response = StreamingResponse(
                self._stream,
                status_code=self.status_code,
                background=self.background,
            )
            response.raw_headers = list(self.headers.raw)
            return response

        response = Response(
            content=self.body,
            status_code=self.status_code,
            media_type=self.media_type,
            background=self.background,
        )
        # Content-Length always reflects the buffered body
        own = [(k, v) for k, v in self.headers.raw if k != b"content-length"]
        own_keys = {k for k, _ in own}
        computed = [
            (k, v)
            for k, v in response.raw_headers
            if k == b"content-length" or k not in own_keys
        ]
        response.raw_headers = own + computed
        return response


@dataclass
class Exchange:
    """One in-flight request/response pair"""

    request: Request
    response: ResponseState = field(default_factory=ResponseState)
    items: ContextItems = field(default_factory=ContextItems)
