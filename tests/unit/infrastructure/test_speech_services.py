"""
Name: Speech Service Unit Tests

Responsibilities:
  - SSML building (escaping, voice resolution)
  - Azure Speech + Translator adapters over httpx.MockTransport
  - Provider status mapping (429 -> RateLimitedError, 5xx -> UpstreamError)
  - Signed speech-function forwarding (HMAC headers, reply shapes)
  - Fake speech service determinism

Constraints:
  - Tests must not make real API calls
"""

import base64
import hashlib
import hmac
import json

import httpx
import pytest

from readaloud.crosscutting.exceptions import ConfigError, RateLimitedError, UpstreamError
from readaloud.domain.entities import AudioFormat, SpeechRequest, Translation
from readaloud.infrastructure.services.speech import (
    AzureSpeechService,
    AzureTranslator,
    FakeSpeechService,
    SignedFunctionSpeechService,
)
from readaloud.infrastructure.services.speech.azure_speech import (
    VOICE_FALLBACK,
    build_ssml,
    escape_xml,
    resolve_voice,
)
from readaloud.infrastructure.services.speech.signed_function import (
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    sign,
)

pytestmark = pytest.mark.unit


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class StubTranslator:
    def __init__(self) -> None:
        self.calls = []

    async def translate(self, text, *, to_language, from_language=None):
        self.calls.append((text, to_language, from_language))
        return Translation(text=f"translated:{text}", language=to_language)


class TestSsml:
    def test_escape_xml_covers_attribute_quotes(self):
        assert escape_xml("a<b & \"c\" 'd'>") == "a&lt;b &amp; &quot;c&quot; &apos;d&apos;&gt;"

    def test_build_ssml(self):
        ssml = build_ssml("Tom & Jerry", language="en-US", voice="en-US-JennyNeural")

        assert ssml == (
            '<speak version="1.0" xml:lang="en-US">'
            '<voice name="en-US-JennyNeural">Tom &amp; Jerry</voice></speak>'
        )

    @pytest.mark.parametrize(
        "language, requested, expected",
        [
            ("es-ES", None, "es-ES-ElviraNeural"),
            ("es-ES", "default", "es-ES-ElviraNeural"),
            ("es-ES", "es-ES-AlvaroNeural", "es-ES-AlvaroNeural"),
            ("xx-YY", None, VOICE_FALLBACK),
            (None, "", VOICE_FALLBACK),
        ],
    )
    def test_resolve_voice(self, language, requested, expected):
        assert resolve_voice(language, requested) == expected


class TestAzureSpeechService:
    @pytest.mark.asyncio
    async def test_synthesizes_mp3(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["ssml"] = request.content.decode("utf-8")
            return httpx.Response(200, content=b"ID3audio")

        service = AzureSpeechService(key="k", region="eastus", client=_client(handler))

        audio = await service.synthesize(SpeechRequest(text="Hello", language="fr-FR"))

        assert seen["url"] == "https://eastus.tts.speech.microsoft.com/cognitiveservices/v1"
        assert seen["headers"]["X-Microsoft-OutputFormat"] == "audio-16khz-32kbitrate-mono-mp3"
        assert seen["headers"]["Ocp-Apim-Subscription-Key"] == "k"
        assert 'voice name="fr-FR-DeniseNeural"' in seen["ssml"]
        assert base64.b64decode(audio.audio_base64) == b"ID3audio"
        assert audio.content_type == "audio/mpeg"
        assert audio.voice == "fr-FR-DeniseNeural"
        assert audio.language == "fr-FR"
        assert audio.latency_ms is not None

    @pytest.mark.asyncio
    async def test_translates_before_synthesis(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ssml"] = request.content.decode("utf-8")
            seen["format"] = request.headers["X-Microsoft-OutputFormat"]
            return httpx.Response(200, content=b"RIFF")

        translator = StubTranslator()
        service = AzureSpeechService(
            key="k", region="eastus", translator=translator, client=_client(handler)
        )

        audio = await service.synthesize(
            SpeechRequest(
                text="Hello",
                language="en-US",
                audio_format=AudioFormat.WAV,
                translate_to="es-ES",
            )
        )

        assert translator.calls == [("Hello", "es-ES", "en-US")]
        assert "translated:Hello" in seen["ssml"]
        assert seen["format"] == "riff-16khz-16bit-mono-pcm"
        assert audio.language == "es-ES"
        assert audio.voice == "es-ES-ElviraNeural"
        assert audio.content_type == "audio/wav"

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(ConfigError):
            await AzureSpeechService(key="", region="eastus").synthesize(
                SpeechRequest(text="Hello", language="en-US")
            )

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "12"}, text="busy")

        service = AzureSpeechService(key="k", region="eastus", client=_client(handler))

        with pytest.raises(RateLimitedError) as exc_info:
            await service.synthesize(SpeechRequest(text="Hello", language="en-US"))

        assert exc_info.value.details["retryAfterS"] == 12
        assert exc_info.value.details["status"] == 429

    @pytest.mark.asyncio
    async def test_rate_limit_default_retry_after(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429)

        service = AzureSpeechService(key="k", region="eastus", client=_client(handler))

        with pytest.raises(RateLimitedError) as exc_info:
            await service.synthesize(SpeechRequest(text="Hello", language="en-US"))

        assert exc_info.value.details["retryAfterS"] == 5

    @pytest.mark.asyncio
    async def test_upstream_error_and_empty_audio(self):
        def failing(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        def empty(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"")

        request = SpeechRequest(text="Hello", language="en-US")
        with pytest.raises(UpstreamError) as exc_info:
            await AzureSpeechService(key="k", region="r", client=_client(failing)).synthesize(request)
        assert exc_info.value.details["status"] == 500
        assert exc_info.value.details["body"] == "boom"

        with pytest.raises(UpstreamError):
            await AzureSpeechService(key="k", region="r", client=_client(empty)).synthesize(request)

    @pytest.mark.asyncio
    async def test_transport_error_becomes_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        service = AzureSpeechService(key="k", region="r", client=_client(handler))

        with pytest.raises(UpstreamError) as exc_info:
            await service.synthesize(SpeechRequest(text="Hello", language="en-US"))

        assert exc_info.value.details["error_type"] == "ConnectTimeout"


class TestAzureTranslator:
    @pytest.mark.asyncio
    async def test_translate(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            seen["region"] = request.headers["Ocp-Apim-Subscription-Region"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[{"translations": [{"text": "Hola", "to": "es"}]}])

        translator = AzureTranslator(key="k", region="westeurope", client=_client(handler))

        result = await translator.translate("Hello", to_language="es", from_language="en")

        assert seen["params"] == {"api-version": "3.0", "to": "es", "from": "en"}
        assert seen["region"] == "westeurope"
        assert seen["body"] == [{"Text": "Hello"}]
        assert result == Translation(text="Hola", language="es")

    @pytest.mark.asyncio
    async def test_missing_translation_is_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"translations": []}])

        translator = AzureTranslator(key="k", region="r", client=_client(handler))

        with pytest.raises(UpstreamError):
            await translator.translate("Hello", to_language="es")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(ConfigError):
            await AzureTranslator(key=None, region=None).translate("Hello", to_language="es")


class TestSignedFunctionSpeechService:
    @pytest.mark.asyncio
    async def test_signs_body_and_reads_reply(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content.decode("utf-8")
            seen["ts"] = request.headers[HEADER_TIMESTAMP]
            seen["sig"] = request.headers[HEADER_SIGNATURE]
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "audioBase64": "QUJD",
                    "audioContentType": "audio/mpeg",
                    "voice": "en-US-JennyNeural",
                    "language": "en-US",
                    "latencyMs": 321,
                },
            )

        service = SignedFunctionSpeechService(
            url="https://speech.example/api/tts",
            shared_secret="shh",
            client=_client(handler),
            clock=lambda: "2024-01-01T00:00:00.000Z",
        )

        audio = await service.synthesize(
            SpeechRequest(text="Hi", language="en-US", request_id="r-1", translate_to="es")
        )

        expected_sig = hmac.new(
            b"shh", f"2024-01-01T00:00:00.000Z\n{seen['body']}".encode("utf-8"), hashlib.sha256
        ).hexdigest()
        assert seen["ts"] == "2024-01-01T00:00:00.000Z"
        assert seen["sig"] == expected_sig == sign("shh", seen["ts"], seen["body"])
        payload = json.loads(seen["body"])
        assert payload["requestId"] == "r-1"
        assert payload["voice"] == "default"
        assert payload["format"] == "audio/mp3"
        assert payload["translateTo"] == "es"
        assert payload["simplify"] is False
        assert payload["caller"] == "aws"
        assert audio.audio_base64 == "QUJD"
        assert audio.latency_ms == 321.0

    @pytest.mark.asyncio
    async def test_reads_nested_audio_shape(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "status": "ok",
                    "audio": {"base64": "WFla", "mime": "audio/wav"},
                    "meta": {"voice": "fr-FR-DeniseNeural", "latencyMs": 12},
                },
            )

        service = SignedFunctionSpeechService(url="https://x", shared_secret="s", client=_client(handler))

        audio = await service.synthesize(SpeechRequest(text="Hi", language="fr-FR"))

        assert audio.audio_base64 == "WFla"
        assert audio.content_type == "audio/wav"
        assert audio.voice == "fr-FR-DeniseNeural"
        assert audio.language == "fr-FR"
        assert audio.latency_ms == 12.0

    @pytest.mark.asyncio
    async def test_reported_failure_is_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"success": False, "error": {"code": "TTS_FAILED", "message": "nope"}}
            )

        service = SignedFunctionSpeechService(url="https://x", shared_secret="s", client=_client(handler))

        with pytest.raises(UpstreamError) as exc_info:
            await service.synthesize(SpeechRequest(text="Hi", language="en-US"))

        assert exc_info.value.message == "nope"
        assert exc_info.value.details["upstream_code"] == "TTS_FAILED"

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(ConfigError):
            await SignedFunctionSpeechService(url="", shared_secret="s").synthesize(
                SpeechRequest(text="Hi", language="en-US")
            )


class TestFakeSpeechService:
    @pytest.mark.asyncio
    async def test_deterministic_audio(self):
        service = FakeSpeechService()
        request = SpeechRequest(text="Hello", language="en-US")

        first = await service.synthesize(request)
        second = await service.synthesize(request)

        assert first == second
        assert first.content_type == "audio/mpeg"
        assert first.voice == "en-US-JennyNeural"
        assert len(service.requests) == 2

    @pytest.mark.asyncio
    async def test_translation_changes_language(self):
        audio = await FakeSpeechService().synthesize(
            SpeechRequest(text="Hello", language="en-US", translate_to="es-ES")
        )

        assert audio.language == "es-ES"
        assert audio.voice == "es-ES-ElviraNeural"
