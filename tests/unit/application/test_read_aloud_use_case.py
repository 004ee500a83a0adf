"""
Name: Read Aloud Use Case Unit Tests

Responsibilities:
  - Input validation (text type, length) and normalization (language,
    format, translation target)
  - Optional simplify step, with fallback to the original text
  - Speech-service failures -> ErrorEnvelope
"""

from unittest.mock import AsyncMock

import pytest

from readaloud.application.usecases import (
    ReadAloudInput,
    ReadAloudUseCase,
    RewriteTextUseCase,
)
from readaloud.application.usecases.read_aloud import (
    is_valid_language,
    parse_audio_format,
    parse_translation_target,
)
from readaloud.crosscutting.exceptions import RateLimitedError
from readaloud.domain.entities import AudioFormat
from readaloud.domain.errors import ErrorKind
from readaloud.infrastructure.services import BackoffCaller, FakeSpeechService

pytestmark = pytest.mark.unit


class TestParsing:
    @pytest.mark.parametrize(
        "value, expected", [("en", True), ("es-ES", True), ("e", False), ("x" * 11, False), (5, False)]
    )
    def test_is_valid_language(self, value, expected):
        assert is_valid_language(value) is expected

    def test_parse_audio_format(self):
        assert parse_audio_format("audio/wav") is AudioFormat.WAV
        assert parse_audio_format("audio/mp3") is AudioFormat.MP3
        assert parse_audio_format(None) is AudioFormat.MP3
        assert parse_audio_format("audio/ogg") is AudioFormat.MP3

    @pytest.mark.parametrize(
        "value, expected", [("es", "es"), (" fr ", "fr"), ("none", None), ("NONE", None), ("", None), (None, None)]
    )
    def test_parse_translation_target(self, value, expected):
        assert parse_translation_target(value) == expected


class TestReadAloudUseCase:
    @pytest.mark.asyncio
    async def test_speaks_text(self):
        speech = FakeSpeechService()
        use_case = ReadAloudUseCase(speech)

        result = await use_case.execute(
            ReadAloudInput(text="Hello", request_id="r-1", language="es-ES", audio_format="audio/wav")
        )

        assert result.ok
        assert result.request_id == "r-1"
        assert result.audio.language == "es-ES"
        assert result.audio.content_type == "audio/wav"
        assert speech.requests[0].audio_format is AudioFormat.WAV

    @pytest.mark.asyncio
    async def test_invalid_language_falls_back_to_default(self):
        speech = FakeSpeechService()

        await ReadAloudUseCase(speech, default_language="en-GB").execute(
            ReadAloudInput(text="Hello", language="x")
        )

        assert speech.requests[0].language == "en-GB"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", 12])
    async def test_text_is_required(self, text):
        speech = FakeSpeechService()

        result = await ReadAloudUseCase(speech).execute(ReadAloudInput(text=text))

        assert not result.ok
        assert result.error.code == ErrorKind.BAD_REQUEST
        assert result.error.message == 'Field "text" is required and must be a string.'
        assert result.request_id
        assert speech.requests == []

    @pytest.mark.asyncio
    async def test_text_too_long(self):
        result = await ReadAloudUseCase(FakeSpeechService(), max_text_chars=5).execute(
            ReadAloudInput(text="toolong")
        )

        assert result.error.code == ErrorKind.BAD_REQUEST
        assert result.error.message == "Max 5 chars"
        assert result.error.details["maxChars"] == 5
        assert result.error.details["textChars"] == 7

    @pytest.mark.asyncio
    async def test_translation_target_is_forwarded(self):
        speech = FakeSpeechService()

        result = await ReadAloudUseCase(speech).execute(
            ReadAloudInput(text="Hello", translate_to="fr-FR")
        )

        assert speech.requests[0].translate_to == "fr-FR"
        assert result.audio.language == "fr-FR"

    @pytest.mark.asyncio
    async def test_simplify_before_speech(self, echo_backend, sleeper):
        speech = FakeSpeechService()
        rewriter = RewriteTextUseCase(caller=BackoffCaller(echo_backend, sleep=sleeper))

        result = await ReadAloudUseCase(speech, rewriter).execute(
            ReadAloudInput(text="Complicated text.", simplify=True)
        )

        assert result.simplified is True
        assert speech.requests[0].text == "out-1"
        assert echo_backend.requests[0].mode == "simplify"

    @pytest.mark.asyncio
    async def test_simplify_failure_speaks_original(self, scripted_backend, sleeper, reply):
        speech = FakeSpeechService()
        backend = scripted_backend([reply.error(500)])
        rewriter = RewriteTextUseCase(caller=BackoffCaller(backend, sleep=sleeper))

        result = await ReadAloudUseCase(speech, rewriter).execute(
            ReadAloudInput(text="Complicated text.", simplify=True)
        )

        assert result.ok
        assert result.simplified is False
        assert speech.requests[0].text == "Complicated text."

    @pytest.mark.asyncio
    async def test_speech_failure_is_normalized(self):
        speech = AsyncMock()
        speech.name = "mock_speech"
        speech.synthesize.side_effect = RateLimitedError(
            "Azure Speech rate limited the request.", details={"retryAfterS": 7}
        )

        result = await ReadAloudUseCase(speech).execute(ReadAloudInput(text="Hello", request_id="r-9"))

        assert not result.ok
        assert result.request_id == "r-9"
        assert result.error.code == ErrorKind.RATE_LIMITED
        assert result.error.details["retryAfterS"] == 7
        assert result.error.details["origin"] == "speech"
