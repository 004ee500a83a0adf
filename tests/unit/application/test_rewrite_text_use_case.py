"""
Name: Rewrite Text Use Case Unit Tests

Responsibilities:
  - Single-chunk and multi-chunk orchestration per mode
  - Short-circuit on the first failing chunk
  - Relay-edge validation (empty text, unknown mode, truncation)
  - Unexpected exceptions -> InternalError with fallback text

Collaborators:
  - readaloud.application.usecases.rewrite_text: Module under test
  - conftest: ScriptedBackend, EchoBackend, RecordingSleeper
"""

from unittest.mock import AsyncMock

import pytest

from readaloud.application.usecases import (
    RewriteTextInput,
    RewriteTextUseCase,
)
from readaloud.application.usecases.rewrite_text import REQUEST_ID_PREFIX
from readaloud.domain.entities import (
    BackendReply,
    Mode,
    OrchestrationFailure,
    OrchestrationSuccess,
)
from readaloud.domain.errors import ErrorKind
from readaloud.infrastructure.services import BackoffCaller, FakeTextBackend
from readaloud.infrastructure.text.chunker import TRUNCATION_MARKER, ParagraphChunker

pytestmark = pytest.mark.unit

THREE_PARAGRAPHS = "\n\n".join(["a" * 30, "b" * 30, "c" * 30])


def _use_case(backend, sleeper, *, max_chars=40, max_text_chars=8000) -> RewriteTextUseCase:
    return RewriteTextUseCase(
        caller=BackoffCaller(backend, sleep=sleeper),
        chunker=ParagraphChunker(max_chars=max_chars),
        max_text_chars=max_text_chars,
    )


class TestRun:
    @pytest.mark.asyncio
    async def test_single_chunk_makes_one_call(self, echo_backend, sleeper):
        use_case = _use_case(echo_backend, sleeper, max_chars=4000)

        result = await use_case.run("A short sentence.", Mode.SIMPLIFY, "req-1")

        assert isinstance(result, OrchestrationSuccess)
        assert result.output_text == "out-1"
        assert result.request_id == "req-1"
        assert len(echo_backend.requests) == 1
        sent = echo_backend.requests[0]
        assert sent.user_content == "Simplify the following text:\n\nA short sentence."
        assert sent.temperature == 0.25
        assert sent.max_output_tokens == 400

    @pytest.mark.asyncio
    async def test_summarize_short_text_with_fake_backend(self, sleeper):
        backend = FakeTextBackend()
        use_case = _use_case(backend, sleeper, max_chars=4000)

        result = await use_case.run("A short sentence.", Mode.SUMMARIZE, "req-2")

        assert result.ok
        assert result.mode is Mode.SUMMARIZE
        assert result.output_text.startswith("- Simulated summary (")
        assert result.output_text.endswith("A short sentence.")
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_simplify_joins_chunks_without_reduction(self, echo_backend, sleeper):
        use_case = _use_case(echo_backend, sleeper)

        result = await use_case.run(THREE_PARAGRAPHS, Mode.SIMPLIFY, "req-3")

        assert result.output_text == "out-1\n\nout-2\n\nout-3"
        assert [r.chunk_index for r in echo_backend.requests] == [1, 2, 3]
        assert {r.chunk_count for r in echo_backend.requests} == {3}
        assert {r.request_id for r in echo_backend.requests} == {"req-3"}

    @pytest.mark.asyncio
    async def test_summarize_adds_reduction_call(self, echo_backend, sleeper):
        use_case = _use_case(echo_backend, sleeper)

        result = await use_case.run(THREE_PARAGRAPHS, Mode.SUMMARIZE, "req-4")

        assert len(echo_backend.requests) == 4
        reduction = echo_backend.requests[-1]
        assert reduction.chunk_index == 0
        assert "out-1\n\nout-2\n\nout-3" in reduction.user_content
        assert reduction.user_content.startswith("Here are bullet-point summaries")
        assert result.output_text == "out-0"

    @pytest.mark.asyncio
    async def test_failing_chunk_short_circuits(self, scripted_backend, sleeper, reply):
        backend = scripted_backend(
            [reply.chat("first"), BackendReply(status_code=200, body="not json"), reply.chat("third")]
        )
        use_case = _use_case(backend, sleeper)

        result = await use_case.run(THREE_PARAGRAPHS, Mode.SIMPLIFY, "req-5")

        assert isinstance(result, OrchestrationFailure)
        assert result.error.code == ErrorKind.PARSE_ERROR
        assert result.fallback_text == THREE_PARAGRAPHS
        assert result.mode == "simplify"
        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion_is_reported(self, scripted_backend, sleeper, reply):
        backend = scripted_backend([reply.error(429)])
        use_case = _use_case(backend, sleeper, max_chars=4000)

        result = await use_case.run("Some text.", Mode.SIMPLIFY, "req-6")

        assert result.error.code == ErrorKind.RATE_LIMITED
        assert sleeper.delays == [2.0, 4.0]
        assert result.fallback_text == "Some text."

    @pytest.mark.asyncio
    async def test_whitespace_text_is_empty_input(self, echo_backend, sleeper):
        result = await _use_case(echo_backend, sleeper).run("  \n\n ", Mode.SIMPLIFY, "req-7")

        assert result.error.code == ErrorKind.EMPTY_INPUT
        assert echo_backend.requests == []

    @pytest.mark.asyncio
    async def test_unknown_mode_string(self, echo_backend, sleeper):
        result = await _use_case(echo_backend, sleeper).run("text", "translate", "req-8")

        assert result.error.code == ErrorKind.BAD_REQUEST
        assert result.mode == "translate"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_internal_error(self):
        caller = AsyncMock()
        caller.call.side_effect = RuntimeError("kaboom")
        use_case = RewriteTextUseCase(caller=caller)

        result = await use_case.run("Some text.", Mode.SIMPLIFY, "req-9")

        assert result.error.code == ErrorKind.INTERNAL_ERROR
        assert "kaboom" not in result.error.message
        assert result.fallback_text == "Some text."


class TestExecute:
    @pytest.mark.asyncio
    async def test_defaults_mode_and_generates_request_id(self, echo_backend, sleeper):
        result = await _use_case(echo_backend, sleeper, max_chars=4000).execute(
            RewriteTextInput(text="Hello.")
        )

        assert result.ok
        assert result.mode is Mode.SIMPLIFY
        assert result.request_id.startswith(REQUEST_ID_PREFIX)

    @pytest.mark.asyncio
    async def test_keeps_caller_request_id(self, echo_backend, sleeper):
        result = await _use_case(echo_backend, sleeper).execute(
            RewriteTextInput(text="Hello.", mode="Summarize", request_id="ext-42")
        )

        assert result.request_id == "ext-42"
        assert result.mode is Mode.SUMMARIZE

    @pytest.mark.asyncio
    async def test_empty_text_is_bad_request(self, echo_backend, sleeper):
        result = await _use_case(echo_backend, sleeper).execute(RewriteTextInput(text="   "))

        assert result.error.code == ErrorKind.BAD_REQUEST
        assert result.error.message == "Text is required and cannot be empty."
        assert result.fallback_text == "   "
        assert echo_backend.requests == []

    @pytest.mark.asyncio
    async def test_unsupported_mode_is_bad_request(self, echo_backend, sleeper):
        result = await _use_case(echo_backend, sleeper).execute(
            RewriteTextInput(text="Hello.", mode="Translate", request_id="r")
        )

        assert result.error.code == ErrorKind.BAD_REQUEST
        assert result.mode == "translate"
        assert result.fallback_text == "Hello."
        assert echo_backend.requests == []

    @pytest.mark.asyncio
    async def test_long_text_is_truncated_before_chunking(self, echo_backend, sleeper):
        use_case = _use_case(echo_backend, sleeper, max_chars=4000, max_text_chars=50)

        await use_case.execute(RewriteTextInput(text="x" * 200))

        sent = echo_backend.requests[0].user_content
        assert sent.endswith("x" * 50 + "\n\n" + TRUNCATION_MARKER)

    @pytest.mark.asyncio
    async def test_failure_fallback_is_truncated_input(self, scripted_backend, sleeper, reply):
        backend = scripted_backend([reply.error(500)])
        use_case = _use_case(backend, sleeper, max_chars=4000, max_text_chars=10)

        result = await use_case.execute(RewriteTextInput(text="y" * 30))

        assert result.error.code == ErrorKind.UPSTREAM_ERROR
        assert result.fallback_text == "y" * 10 + "\n\n" + TRUNCATION_MARKER
