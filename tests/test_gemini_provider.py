"""Tests for the Gemini adapter.

SDK responses are duck-typed with SimpleNamespace; no request leaves the process.
"""
import base64
from types import SimpleNamespace

from google.api_core import exceptions as google_exceptions

from core.errors import AuthError, QuotaError, TransportError, UnknownError
from core.gemini_provider import (
    GeminiChatProvider,
    GeminiStream,
    normalize_response,
    to_finish_signal,
    to_gemini_contents,
)
from core.provider import FinishSignal
from models.session import ChatTurn, ContentPart, InlineAttachment


def enum(name):
    return SimpleNamespace(name=name)


def sdk_response(text=None, finish=None, block=None):
    candidates = []
    if text is not None or finish is not None:
        parts = [SimpleNamespace(text=text)] if text else []
        candidates.append(SimpleNamespace(content=SimpleNamespace(parts=parts),
                                          finish_reason=enum(finish) if finish else None))
    feedback = SimpleNamespace(block_reason=enum(block) if block else enum("BLOCK_REASON_UNSPECIFIED"))
    return SimpleNamespace(candidates=candidates, prompt_feedback=feedback)


class FakeStreamingResponse:
    """Iterable like the SDK's streaming response, aggregated afterwards."""

    def __init__(self, chunks, aggregate):
        self._chunks = chunks
        self.candidates = aggregate.candidates
        self.prompt_feedback = aggregate.prompt_feedback

    def __iter__(self):
        return iter(self._chunks)


class FakeModel:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def generate_content(self, contents, stream=False):
        self.calls.append((contents, stream))
        return self.response


class TestNormalizeResponse:
    """SDK objects to ProviderResponse."""

    def test_text_and_stop(self):
        response = normalize_response(sdk_response("Hello", "STOP"))
        assert response.text == "Hello"
        assert response.finish_signal == FinishSignal.STOP
        assert response.block_reason is None
        assert response.candidate_count == 1

    def test_prompt_blocked(self):
        response = normalize_response(sdk_response(block="SAFETY"))
        assert response.block_reason == "SAFETY"
        assert response.text == ""
        assert response.candidate_count == 0

    def test_finish_without_parts(self):
        response = normalize_response(sdk_response(finish="SAFETY"))
        assert response.text == ""
        assert response.finish_signal == FinishSignal.SAFETY

    def test_finish_reason_mapping(self):
        assert to_finish_signal(enum("MAX_TOKENS")) == FinishSignal.MAX_TOKENS
        assert to_finish_signal(enum("RECITATION")) == FinishSignal.RECITATION
        assert to_finish_signal(enum("PROHIBITED_CONTENT")) == FinishSignal.SAFETY
        assert to_finish_signal(enum("MALFORMED_FUNCTION_CALL")) == FinishSignal.OTHER
        assert to_finish_signal(enum("FINISH_REASON_UNSPECIFIED")) is None
        assert to_finish_signal(None) is None


class TestContents:
    """Turns to Gemini content dicts."""

    def test_roles_and_parts(self):
        image = InlineAttachment(data=base64.b64encode(b"\x89PNG").decode("ascii"), mime_type="image/png")
        history = [ChatTurn.user(ContentPart.from_text("Hi")), ChatTurn.assistant("Hello!")]
        turn = ChatTurn.user(ContentPart.from_text("Look"), ContentPart.from_attachment(image))

        contents = to_gemini_contents(history, turn)
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[2]["parts"][0] == {"text": "Look"}
        assert contents[2]["parts"][1] == {"inline_data": {"mime_type": "image/png", "data": b"\x89PNG"}}


class TestGeminiChatProvider:
    """Adapter calls and error translation."""

    def test_missing_key_is_unconfigured(self):
        assert GeminiChatProvider(None).is_configured is False

    def test_send_passes_full_history(self):
        model = FakeModel(sdk_response("Sure", "STOP"))
        provider = GeminiChatProvider(None)
        response = provider.send(model, [ChatTurn.assistant("Welcome")], ChatTurn.user(ContentPart.from_text("Hi")))

        contents, stream = model.calls[0]
        assert stream is False
        assert len(contents) == 2
        assert response.text == "Sure"

    def test_send_stream(self):
        chunks = [sdk_response("Hel"), sdk_response("lo", "STOP")]
        streaming = FakeStreamingResponse(chunks, sdk_response("Hello", "STOP"))
        model = FakeModel(streaming)
        stream = GeminiChatProvider(None).send_stream(model, [], ChatTurn.user(ContentPart.from_text("Hi")))

        assert isinstance(stream, GeminiStream)
        assert [c.text for c in stream] == ["Hel", "lo"]
        assert stream.final().text == "Hello"
        assert model.calls[0][1] is True

    def test_translate_auth(self):
        provider = GeminiChatProvider(None)
        assert isinstance(provider.translate_error(google_exceptions.Unauthorized("no")), AuthError)
        assert isinstance(provider.translate_error(google_exceptions.Forbidden("no")), AuthError)
        assert isinstance(provider.translate_error(ValueError("API key not valid. Please pass a valid API key.")),
                          AuthError)

    def test_translate_quota(self):
        provider = GeminiChatProvider(None)
        assert isinstance(provider.translate_error(google_exceptions.TooManyRequests("slow down")), QuotaError)
        assert isinstance(provider.translate_error(google_exceptions.ResourceExhausted("Quota exceeded")),
                          QuotaError)

    def test_translate_transport(self):
        provider = GeminiChatProvider(None)
        assert isinstance(provider.translate_error(google_exceptions.ServiceUnavailable("down")), TransportError)
        assert isinstance(provider.translate_error(ConnectionError("reset")), TransportError)

    def test_translate_unknown(self):
        provider = GeminiChatProvider(None)
        assert isinstance(provider.translate_error(RuntimeError("boom")), UnknownError)
