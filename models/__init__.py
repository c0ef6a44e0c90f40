"""MomCare Data Models.

This module contains dataclasses for context snapshots and chat state.

Models:
    UserPreferences: Answers from the pre-chat form (this session only).
    UserProfile: Stored profile record.
    UserContextSnapshot: Resolved facts used to build the system prompt.
    ChatContext: Latest readings, upcoming appointments and recent topics.
    ChatTurn / ContentPart: One exchange unit and its ordered parts.
    ChatSession / SessionState: Live conversation handle and its lifecycle.
    ResponseOutcome / OutcomeKind: Classified result of a generation attempt.
"""
from models.context import (
    ReadingKind,
    UserPreferences,
    UserProfile,
    UserContextSnapshot,
    BloodPressureReading,
    BloodSugarReading,
    WeightReading,
    Appointment,
    ChatContext,
)
from models.session import (
    SessionState,
    Role,
    InlineAttachment,
    ContentPart,
    ChatTurn,
    ChatSession,
)
from models.outcome import OutcomeKind, ResponseOutcome

__all__ = [
    "ReadingKind",
    "UserPreferences",
    "UserProfile",
    "UserContextSnapshot",
    "BloodPressureReading",
    "BloodSugarReading",
    "WeightReading",
    "Appointment",
    "ChatContext",
    "SessionState",
    "Role",
    "InlineAttachment",
    "ContentPart",
    "ChatTurn",
    "ChatSession",
    "OutcomeKind",
    "ResponseOutcome",
]
