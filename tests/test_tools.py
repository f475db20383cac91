"""Tests for modelwire.tools - tool-call fragment reassembly."""

import pytest

from modelwire.errors import ToolCallParseError
from modelwire.schema import ChatResponse
from modelwire.stream import StreamEvent
from modelwire.tools import (
    ChatFinished,
    ReassembledToolCall,
    TextDelta,
    ToolCallReady,
    ToolCallReassembler,
    fragments_of,
    parse_arguments,
    reassemble,
)

from tests.conftest import chat_chunk


def chunk(**kwargs) -> ChatResponse:
    return ChatResponse.model_validate(chat_chunk(**kwargs))


def fragment(index=None, name=None, arguments=None) -> dict:
    function = {}
    if index is not None:
        function["index"] = index
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    return {"function": function}


def feed_all(chunks: list[ChatResponse]) -> tuple[list, ToolCallReassembler]:
    reassembler = ToolCallReassembler()
    events = []
    for c in chunks:
        events.extend(reassembler.feed(c))
    return events, reassembler


def ready_calls(events: list) -> list[ToolCallReady]:
    return [e for e in events if isinstance(e, ToolCallReady)]


class TestFragmentsOf:
    """Tests for extracting fragments from a message."""

    def test_string_arguments_are_partial(self):
        c = chunk(tool_calls=[fragment(0, "get_weather", '{"ci')])
        [frag] = fragments_of(c.message)
        assert frag.index == 0
        assert frag.function_name == "get_weather"
        assert frag.arguments_text == '{"ci'
        assert not frag.complete

    def test_object_arguments_are_complete(self):
        c = chunk(tool_calls=[fragment(None, "get_time", {"tz": "UTC"})])
        [frag] = fragments_of(c.message)
        assert frag.index == 0
        assert frag.complete
        assert frag.arguments == {"tz": "UTC"}

    def test_missing_index_uses_position(self):
        c = chunk(tool_calls=[fragment(None, "a", {}), fragment(None, "b", {})])
        assert [f.index for f in fragments_of(c.message)] == [0, 1]


class TestToolCallReassembler:
    """Tests for accumulating fragments across chunks."""

    def test_reassembles_arguments_split_over_three_chunks(self):
        """Portland: one call, arguments split three ways, flushed on done."""
        events, _ = feed_all([
            chunk(tool_calls=[fragment(0, "get_weather", '{"ci')]),
            chunk(tool_calls=[fragment(0, None, 'ty":"Port')]),
            chunk(tool_calls=[fragment(0, None, 'land"}')]),
            chunk(done=True, done_reason="stop"),
        ])

        calls = ready_calls(events)
        assert len(calls) == 1
        assert calls[0].call == ReassembledToolCall(
            index=0, name="get_weather", arguments={"city": "Portland"}
        )
        assert calls[0].error is None
        assert isinstance(events[-1], ChatFinished)
        assert events[-1].done_reason == "stop"

    def test_nothing_finalized_before_done(self):
        events, reassembler = feed_all([
            chunk(tool_calls=[fragment(0, "get_weather", '{"city":')]),
            chunk(tool_calls=[fragment(0, None, '"Portland"}')]),
        ])
        assert ready_calls(events) == []
        assert reassembler.open_indexes == [0]

    def test_complete_object_finalizes_immediately(self):
        events, reassembler = feed_all([
            chunk(tool_calls=[fragment(None, "get_time", {"tz": "UTC"})]),
        ])
        [ready] = ready_calls(events)
        assert ready.call.name == "get_time"
        assert ready.call.arguments == {"tz": "UTC"}
        assert reassembler.open_indexes == []

    def test_interleaved_indexes_flush_in_index_order(self):
        events, _ = feed_all([
            chunk(tool_calls=[fragment(1, "second", '{"n":'), fragment(0, "first", '{"n":')]),
            chunk(tool_calls=[fragment(0, None, "0}"), fragment(1, None, "1}")]),
            chunk(done=True),
        ])
        calls = [r.call for r in ready_calls(events)]
        assert [(c.index, c.name, c.arguments) for c in calls] == [
            (0, "first", {"n": 0}),
            (1, "second", {"n": 1}),
        ]

    def test_parse_failure_is_per_call(self):
        events, reassembler = feed_all([
            chunk(tool_calls=[fragment(0, "broken", '{"city": "Port'), fragment(1, "fine", '{"ok": true}')]),
            chunk(done=True),
        ])
        broken, fine = ready_calls(events)

        assert broken.call is None
        assert isinstance(broken.error, ToolCallParseError)
        assert broken.error.index == 0
        assert fine.call.arguments == {"ok": True}

        finished = events[-1]
        assert isinstance(finished, ChatFinished)
        assert [e.index for e in finished.errors] == [0]
        assert reassembler.errors == list(finished.errors)

    def test_conflicting_names_last_writer_wins(self):
        events, reassembler = feed_all([
            chunk(tool_calls=[fragment(0, "get_weather", "{")]),
            chunk(tool_calls=[fragment(0, "get_forecast", "}")]),
            chunk(done=True),
        ])
        [ready] = ready_calls(events)
        assert ready.call.name == "get_forecast"
        assert ready.name_conflict is True
        assert reassembler.name_conflicts == [0]

    def test_missing_name_is_reported(self):
        events, _ = feed_all([
            chunk(tool_calls=[fragment(0, None, '{"a": 1}')]),
            chunk(done=True),
        ])
        [ready] = ready_calls(events)
        assert ready.call is None
        assert "missing function name" in str(ready.error)

    def test_text_passes_through(self):
        events, _ = feed_all([
            chunk(content="Hel"),
            chunk(content="lo"),
            chunk(done=True),
        ])
        deltas = [e.content for e in events if isinstance(e, TextDelta)]
        assert deltas == ["Hel", "lo"]

    def test_thinking_passes_through(self):
        c = ChatResponse.model_validate({
            "message": {"role": "assistant", "content": "", "thinking": "hmm"},
            "done": False,
        })
        events, _ = feed_all([c])
        assert events == [TextDelta(content="", thinking="hmm")]

    def test_discard_clears_open_calls(self):
        reassembler = ToolCallReassembler()
        reassembler.feed(chunk(tool_calls=[fragment(0, "x", "{")]))
        reassembler.discard()
        assert reassembler.open_indexes == []


class TestParseArguments:
    """Tests for argument text parsing."""

    def test_blank_is_empty_mapping(self):
        assert parse_arguments(0, "  ") == {}

    def test_non_object_rejected(self):
        with pytest.raises(ToolCallParseError, match="got list"):
            parse_arguments(3, "[1, 2]")


class TestReassembleStream:
    """Tests for the async adapter over a chat event stream."""

    @pytest.mark.asyncio
    async def test_reassemble_async(self):
        async def events():
            for c in [
                chunk(content="Checking"),
                chunk(tool_calls=[fragment(0, "get_weather", '{"city":')]),
                chunk(tool_calls=[fragment(0, None, '"Portland"}')]),
                chunk(done=True, done_reason="stop"),
            ]:
                yield StreamEvent(payload=c, done=c.done)

        out = [e async for e in reassemble(events())]

        assert isinstance(out[0], TextDelta)
        assert out[1].call.arguments == {"city": "Portland"}
        assert isinstance(out[2], ChatFinished)

    @pytest.mark.asyncio
    async def test_separate_streams_do_not_share_state(self):
        async def events(name):
            yield StreamEvent(payload=chunk(tool_calls=[fragment(0, name, "{}")]))
            yield StreamEvent(payload=chunk(done=True), done=True)

        a = [e async for e in reassemble(events("alpha"))]
        b = [e async for e in reassemble(events("beta"))]

        assert a[0].call.name == "alpha"
        assert b[0].call.name == "beta"
        assert not a[0].name_conflict and not b[0].name_conflict
