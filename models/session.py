from typing import List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import uuid


class SessionState(Enum):
    UNINITIALIZED = "uninitialized"
    OPENING = "opening"
    ACTIVE = "active"
    BLOCKED = "blocked"
    TERMINATED = "terminated"
    ERROR = "error"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class InlineAttachment:
    """Binary payload in the provider's inline form."""
    data: str  # base64
    mime_type: str


@dataclass(frozen=True)
class ContentPart:
    """One ordered piece of a turn: text or an inline attachment."""
    text: Optional[str] = None
    attachment: Optional[InlineAttachment] = None

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @classmethod
    def from_attachment(cls, attachment: InlineAttachment) -> "ContentPart":
        return cls(attachment=attachment)

    @property
    def is_empty(self) -> bool:
        return self.attachment is None and not (self.text and self.text.strip())


@dataclass(frozen=True)
class ChatTurn:
    """One role-tagged exchange unit. Immutable once sent."""
    role: Role
    parts: Tuple[ContentPart, ...]

    def __post_init__(self):
        if not any(not p.is_empty for p in self.parts):
            raise ValueError("A chat turn needs non-empty text or at least one attachment.")

    @classmethod
    def user(cls, *parts: ContentPart) -> "ChatTurn":
        return cls(role=Role.USER, parts=tuple(parts))

    @classmethod
    def assistant(cls, text: str) -> "ChatTurn":
        return cls(role=Role.ASSISTANT, parts=(ContentPart.from_text(text),))

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if p.text)

    @property
    def has_attachments(self) -> bool:
        return any(p.attachment is not None for p in self.parts)


@dataclass
class ChatSession:
    """A live conversation handle owned by a single caller.

    Not safe for concurrent send calls: the transcript is an ordered,
    append-only log and callers must wait for each outcome before sending again.
    """
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SessionState = SessionState.UNINITIALIZED
    system_prompt: str = ""
    transcript: List[ChatTurn] = field(default_factory=list)
    hidden_turns: int = 0  # Leading turns that carry an injected system prompt
    provider_handle: object = None
    consecutive_blocks: int = 0
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def visible_transcript(self) -> List[ChatTurn]:
        return self.transcript[self.hidden_turns:]

    def append_exchange(self, user_turn: ChatTurn, assistant_turn: ChatTurn):
        self.transcript.append(user_turn)
        self.transcript.append(assistant_turn)
