"""Provider-neutral chat interface.

The prompt composer, classifier and dispatcher only ever see the types in
this module. Each backing provider ships one adapter that maps its SDK
objects onto ``ProviderResponse`` and its exceptions onto the error taxonomy.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from core.errors import ProviderError
from models.session import ChatTurn


class FinishSignal(Enum):
    """Why generation stopped, normalized across providers."""
    STOP = "stop"
    MAX_TOKENS = "max_tokens"
    SAFETY = "safety"
    RECITATION = "recitation"
    OTHER = "other"


@dataclass(frozen=True)
class ProviderResponse:
    """One complete response or one streamed chunk."""
    text: str = ""
    block_reason: Optional[str] = None
    finish_signal: Optional[FinishSignal] = None
    candidate_count: int = 0


class ProviderStream(ABC):
    """Chunked output of one streamed turn.

    Iterating yields chunks in arrival order; ``final()`` returns the
    aggregated response once iteration has finished.
    """

    @abstractmethod
    def __iter__(self) -> Iterator[ProviderResponse]:
        ...

    @abstractmethod
    def final(self) -> ProviderResponse:
        ...


class ChatProvider(ABC):
    """A multi-turn text/image generation backend."""

    # Whether open() accepts the system prompt out of band.
    supports_system_instruction: bool = True

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """False when the client could not be initialized (missing credential)."""

    @abstractmethod
    def open(self, system_instruction: Optional[str]) -> object:
        """Open a provider session and return its opaque handle."""

    @abstractmethod
    def send(self, handle: object, history: List[ChatTurn], turn: ChatTurn) -> ProviderResponse:
        """Send ``turn`` after ``history`` and return the whole response."""

    @abstractmethod
    def send_stream(self, handle: object, history: List[ChatTurn], turn: ChatTurn) -> ProviderStream:
        """Send ``turn`` after ``history`` and return a chunk stream."""

    @abstractmethod
    def translate_error(self, exc: Exception) -> ProviderError:
        """Map a provider/transport exception onto the error taxonomy."""
