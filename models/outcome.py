from typing import Optional
from dataclasses import dataclass
from enum import Enum


class OutcomeKind(Enum):
    OK = "ok"
    PARTIAL_SAFETY_STOP = "partial_safety_stop"
    BLOCKED = "blocked"
    TRUNCATED = "truncated"
    COPYRIGHT_STOP = "copyright_stop"
    EMPTY = "empty"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class ResponseOutcome:
    """Tagged result of one generation attempt.

    ``text`` is whatever the model generated (possibly empty or partial);
    ``notice`` is the explanatory sentence shown to the user, if any.
    """
    kind: OutcomeKind
    text: str = ""
    notice: Optional[str] = None
    block_reason: Optional[str] = None

    @property
    def message(self) -> str:
        """The text to show the end user."""
        if self.kind in (OutcomeKind.OK, OutcomeKind.TRUNCATED):
            return self.text + (self.notice or "")
        return self.notice or self.text
