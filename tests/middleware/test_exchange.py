import pytest
from starlette.responses import PlainTextResponse, StreamingResponse

from core.exceptions import (
    ContextItemTypeError,
    DuplicateHeaderError,
    ResponseBodyLockedError,
)
from middleware.exchange import (
    ContextItems,
    Exchange,
    FlagValue,
    IntValue,
    ResponseState,
    TextValue,
)


class TestResponseHeaders:
    """Append vs strict add on the response accumulator"""

    def test_append_same_key_keeps_both_values(self):
        """
        GIVEN a response that already has a header
        WHEN a second value is appended under the same key
        THEN both values are present and nothing is raised.
        """
        response = ResponseState()

        response.append_header("Custom-Header1", "Jacob-Perkins")
        response.append_header("Custom-Header1", "Second")

        assert response.headers.getlist("custom-header1") == ["Jacob-Perkins", "Second"]

    def test_strict_add_rejects_duplicate_key(self):
        response = ResponseState()
        response.add_header("CustomHeader2", "jacob-per")

        with pytest.raises(DuplicateHeaderError) as exc_info:
            response.add_header("customheader2", "again")

        assert exc_info.value.key == "customheader2"
        assert response.headers.getlist("CustomHeader2") == ["jacob-per"]

    def test_set_header_replaces_all_values(self):
        response = ResponseState()
        response.append_header("X-Test", "a")
        response.append_header("X-Test", "b")

        response.set_header("X-Test", "c")

        assert response.headers.getlist("X-Test") == ["c"]

    def test_remove_missing_header_is_noop(self):
        response = ResponseState()
        response.remove_header("X-Missing")
        assert "X-Missing" not in response.headers


class TestResponseRender:
    def test_buffered_body_sets_content_length(self):
        response = ResponseState(status_code=403)
        response.media_type = "text/plain"
        response.append_header("X-Reason", "blocked")
        response.write("denied")

        rendered = response.render()

        assert rendered.status_code == 403
        assert rendered.body == b"denied"
        assert rendered.headers["content-length"] == "6"
        assert rendered.headers["x-reason"] == "blocked"
        assert rendered.headers["content-type"].startswith("text/plain")

    def test_empty_response_renders(self):
        rendered = ResponseState().render()

        assert rendered.status_code == 200
        assert rendered.body == b""

    def test_adopt_buffered_response_merges_headers(self):
        response = ResponseState()
        response.append_header("Custom-Header1", "Jacob-Perkins")

        response.adopt(PlainTextResponse("hello", status_code=201, headers={"X-Down": "1"}))
        rendered = response.render()

        assert rendered.status_code == 201
        assert rendered.body == b"hello"
        assert rendered.headers["custom-header1"] == "Jacob-Perkins"
        assert rendered.headers["x-down"] == "1"
        assert rendered.headers.getlist("content-length") == ["5"]

    def test_adopt_replaces_single_value_headers(self):
        """
        GIVEN a step that set content-type and a multi-value header before call_next
        WHEN the terminal response is adopted
        THEN content-type holds only the terminal value and other headers accumulate.
        """
        response = ResponseState()
        response.set_header("Content-Type", "application/xml")
        response.append_header("Vary", "Accept")

        response.adopt(PlainTextResponse("hello", headers={"Vary": "Origin"}))
        rendered = response.render()

        assert rendered.headers.getlist("content-type") == ["text/plain; charset=utf-8"]
        assert rendered.headers.getlist("vary") == ["Accept", "Origin"]

    def test_adopt_streaming_response_forwards_stream(self):
        async def body():
            yield b"chunk"

        response = ResponseState()
        response.adopt(StreamingResponse(body(), media_type="text/plain"))

        assert response.is_streamed
        rendered = response.render()
        assert isinstance(rendered, StreamingResponse)
        assert rendered.headers["content-type"].startswith("text/plain")

    def test_write_after_streamed_adopt_fails(self):
        async def body():
            yield b"chunk"

        response = ResponseState()
        response.adopt(StreamingResponse(body()))

        with pytest.raises(ResponseBodyLockedError):
            response.write(b"more")


class TestContextItems:
    def test_absent_key_reads_as_none(self):
        items = ContextItems()

        assert items.get("jacob") is None
        assert items.get_text("jacob") is None
        assert "jacob" not in items

    def test_typed_values_round_trip_through_their_accessor(self):
        items = ContextItems()
        items.set("jacob", TextValue("perkins"))
        items.set("count", IntValue(3))
        items.set("seen", FlagValue(True))

        assert items.get_text("jacob") == "perkins"
        assert items.get_int("count") == 3
        assert items.get_flag("seen") is True
        assert len(items) == 3
        assert set(items) == {"jacob", "count", "seen"}
        assert items.as_dict() == {"jacob": "perkins", "count": 3, "seen": True}

    def test_wrong_accessor_raises_type_error(self):
        items = ContextItems()
        items.set("count", IntValue(3))

        with pytest.raises(ContextItemTypeError) as exc_info:
            items.get_text("count")

        assert exc_info.value.expected == "text"
        assert exc_info.value.actual == "int"

    def test_untagged_values_are_rejected(self):
        items = ContextItems()

        with pytest.raises(TypeError):
            items.set("jacob", "perkins")

    def test_pop_removes_value(self):
        items = ContextItems()
        items.set("jacob", TextValue("perkins"))

        assert items.pop("jacob") == TextValue("perkins")
        assert items.pop("jacob") is None


def test_exchanges_do_not_share_state(make_request):
    first = Exchange(request=make_request())
    second = Exchange(request=make_request())

    first.items.set("jacob", TextValue("perkins"))
    first.response.append_header("X-Only-First", "1")

    assert "jacob" not in second.items
    assert "X-Only-First" not in second.response.headers
