"""Gemini adapter for the ChatProvider interface.

Talks to ``google.generativeai`` directly through ``generate_content`` with
the full history on every call, so block and finish metadata always reach
the classifier instead of being raised by the SDK's own chat wrapper.

Design Decisions:
    1. One adapter owns every Gemini-specific detail: role names, inline
       blob parts, finish/block enum names and api_core exceptions.
    2. The client is configured once when the adapter is constructed by the
       application root; a missing key leaves ``is_configured`` False.
"""
import base64
import logging
from typing import Any, Dict, Iterator, List, Optional

from google.api_core import exceptions as google_exceptions

from config.llm import configure_gemini, get_gemini_model
from config.settings import GEMINI_MODEL_NAME
from core.errors import AuthError, ProviderError, QuotaError, TransportError, UnknownError
from core.provider import ChatProvider, FinishSignal, ProviderResponse, ProviderStream
from models.session import ChatTurn, Role

logger = logging.getLogger(__name__)

_ROLE_NAMES = {Role.USER: "user", Role.ASSISTANT: "model"}

# Gemini finish reasons that are policy stops rather than normal endings
_SAFETY_FINISH_NAMES = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII", "IMAGE_SAFETY"}


def _enum_name(value: Any) -> Optional[str]:
    """Name of an SDK enum value, or None when unset/unspecified."""
    if value is None:
        return None
    name = getattr(value, "name", None) or str(value)
    if not name or name.endswith("UNSPECIFIED") or name == "0":
        return None
    return name


def to_finish_signal(reason: Any) -> Optional[FinishSignal]:
    name = _enum_name(reason)
    if name is None:
        return None
    if name == "STOP":
        return FinishSignal.STOP
    if name == "MAX_TOKENS":
        return FinishSignal.MAX_TOKENS
    if name in _SAFETY_FINISH_NAMES:
        return FinishSignal.SAFETY
    if name == "RECITATION":
        return FinishSignal.RECITATION
    return FinishSignal.OTHER


def _extract_text(candidates: List[Any]) -> str:
    # response.text raises when the first candidate has no parts, so read parts directly
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", "") or "" for part in parts)


def normalize_response(response: Any) -> ProviderResponse:
    """Map a Gemini GenerateContentResponse (or chunk) to a ProviderResponse."""
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = _enum_name(getattr(feedback, "block_reason", None))
    candidates = list(getattr(response, "candidates", None) or [])
    finish_signal = to_finish_signal(getattr(candidates[0], "finish_reason", None)) if candidates else None
    return ProviderResponse(
        text=_extract_text(candidates),
        block_reason=block_reason,
        finish_signal=finish_signal,
        candidate_count=len(candidates),
    )


def to_gemini_content(turn: ChatTurn) -> Dict[str, Any]:
    parts = []
    for part in turn.parts:
        if part.attachment is not None:
            parts.append({
                "inline_data": {
                    "mime_type": part.attachment.mime_type,
                    "data": base64.b64decode(part.attachment.data),
                }
            })
        elif part.text:
            parts.append({"text": part.text})
    return {"role": _ROLE_NAMES[turn.role], "parts": parts}


def to_gemini_contents(history: List[ChatTurn], turn: ChatTurn) -> List[Dict[str, Any]]:
    return [to_gemini_content(t) for t in history] + [to_gemini_content(turn)]


class GeminiStream(ProviderStream):
    """Wraps a streaming GenerateContentResponse."""

    def __init__(self, response: Any):
        self._response = response

    def __iter__(self) -> Iterator[ProviderResponse]:
        for chunk in self._response:
            yield normalize_response(chunk)

    def final(self) -> ProviderResponse:
        # After full iteration the SDK response holds the joined candidates
        return normalize_response(self._response)


class GeminiChatProvider(ChatProvider):
    """
    ChatProvider backed by Gemini (google-generativeai).

    Attributes:
        model_name: Gemini model used for every session.
    """

    supports_system_instruction = True

    def __init__(self, api_key: Optional[str], model_name: str = GEMINI_MODEL_NAME):
        self.model_name = model_name
        self._configured = configure_gemini(api_key)

    @property
    def is_configured(self) -> bool:
        return self._configured

    def open(self, system_instruction: Optional[str]) -> object:
        try:
            return get_gemini_model(system_instruction=system_instruction, model_name=self.model_name)
        except Exception as e:
            raise self.translate_error(e) from e

    def send(self, handle: object, history: List[ChatTurn], turn: ChatTurn) -> ProviderResponse:
        response = handle.generate_content(to_gemini_contents(history, turn))
        return normalize_response(response)

    def send_stream(self, handle: object, history: List[ChatTurn], turn: ChatTurn) -> ProviderStream:
        response = handle.generate_content(to_gemini_contents(history, turn), stream=True)
        return GeminiStream(response)

    def translate_error(self, exc: Exception) -> ProviderError:
        if isinstance(exc, ProviderError):
            return exc

        message = str(exc)
        if isinstance(exc, (google_exceptions.Unauthorized, google_exceptions.Forbidden)) \
                or "API key not valid" in message:
            return AuthError(message)
        if isinstance(exc, google_exceptions.TooManyRequests) or "quota" in message.lower():
            return QuotaError(message)
        if isinstance(exc, (google_exceptions.ServiceUnavailable,
                            google_exceptions.GatewayTimeout,
                            google_exceptions.RetryError,
                            ConnectionError,
                            TimeoutError)):
            return TransportError(message)
        return UnknownError(message)
