"""Shared fixtures: a scripted in-memory chat provider.

No test touches the network. Responses, streams and exceptions are queued
up front and replayed in order.
"""
from typing import List, Optional

import pytest

from core.errors import ProviderError, UnknownError
from core.provider import ChatProvider, FinishSignal, ProviderResponse, ProviderStream
from models.context import ChatContext, UserPreferences, UserProfile


class FakeStream(ProviderStream):
    """Replays chunks, optionally raising after ``fail_after`` of them."""

    def __init__(self, chunks: List[ProviderResponse], final: Optional[ProviderResponse] = None,
                 error: Optional[Exception] = None, fail_after: Optional[int] = None):
        self.chunks = chunks
        self._final = final
        self.error = error
        self.fail_after = fail_after
        self.consumed = 0

    def __iter__(self):
        for i, chunk in enumerate(self.chunks):
            if self.error is not None and self.fail_after == i:
                raise self.error
            self.consumed += 1
            yield chunk
        if self.error is not None and self.fail_after is None:
            raise self.error

    def final(self) -> ProviderResponse:
        if self._final is not None:
            return self._final
        last = self.chunks[-1] if self.chunks else ProviderResponse()
        return ProviderResponse(
            text="".join(c.text for c in self.chunks),
            block_reason=last.block_reason,
            finish_signal=last.finish_signal,
            candidate_count=1 if self.chunks else 0,
        )


class FakeChatProvider(ChatProvider):
    """Scripted ChatProvider recording every call it receives."""

    def __init__(self, configured: bool = True, supports_system_instruction: bool = True):
        self.configured = configured
        self.supports_system_instruction = supports_system_instruction
        self.responses = []  # ProviderResponse, FakeStream or Exception, consumed in order
        self.open_error: Optional[Exception] = None
        self.opened_with = []
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def queue(self, *items):
        self.responses.extend(items)
        return self

    def open(self, system_instruction):
        self.opened_with.append(system_instruction)
        if self.open_error is not None:
            raise self.open_error
        return object()

    def _next(self):
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def send(self, handle, history, turn):
        self.calls.append((list(history), turn))
        return self._next()

    def send_stream(self, handle, history, turn):
        self.calls.append((list(history), turn))
        return self._next()

    def translate_error(self, exc):
        if isinstance(exc, ProviderError):
            return exc
        return UnknownError(str(exc))


def ok(text: str) -> ProviderResponse:
    return ProviderResponse(text=text, finish_signal=FinishSignal.STOP, candidate_count=1)


def blocked(reason: str = "SAFETY") -> ProviderResponse:
    return ProviderResponse(block_reason=reason)


def finished(signal: FinishSignal, text: str = "") -> ProviderResponse:
    return ProviderResponse(text=text, finish_signal=signal, candidate_count=1)


@pytest.fixture
def provider():
    return FakeChatProvider()


@pytest.fixture
def prefs():
    return UserPreferences(feeling="anxious", weeks_pregnant=20)


@pytest.fixture
def profile():
    return UserProfile(name="Asha", age=29, weeks_pregnant=18, pre_existing_conditions="None")


@pytest.fixture
def empty_context():
    return ChatContext()


@pytest.fixture
def active_session(provider, prefs, profile, empty_context):
    from services.session_service import SessionManager
    return SessionManager(provider).open(prefs, profile, empty_context)
