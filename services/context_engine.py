"""Context Engineering Module

Gathers the session-open snapshot the prompt composer needs.

This module provides:
1. ContextDataSource - the interface to the profile and health-log store
2. Independent fetches - one failing source never aborts the others
3. Schedule windowing - upcoming, not-completed appointments, soonest first
4. Memory windowing - only the newest few user messages are kept
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from config.settings import MAX_UPCOMING_APPOINTMENTS, MEMORY_EXCERPT_LIMIT
from core.observability import Tracer
from models.context import (
    Appointment,
    BloodPressureReading,
    BloodSugarReading,
    ChatContext,
    UserProfile,
    WeightReading,
)
from tools.context_formatters import parse_appointment_datetime

logger = logging.getLogger(__name__)


def _as_local_naive(value: datetime) -> datetime:
    # Stored timestamps may carry a zone; appointment times parsed from free text never do
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class ContextDataSource(ABC):
    """Read-only access to one user's stored profile and health logs."""

    @abstractmethod
    def get_user_profile(self, user_id: str) -> Optional[Union[UserProfile, Dict[str, Any]]]:
        """Stored profile, or None if the user never filled one in."""

    @abstractmethod
    def get_latest_blood_pressure(self, user_id: str) -> Optional[BloodPressureReading]:
        ...

    @abstractmethod
    def get_latest_blood_sugar(self, user_id: str) -> Optional[BloodSugarReading]:
        ...

    @abstractmethod
    def get_latest_weight(self, user_id: str) -> Optional[WeightReading]:
        ...

    @abstractmethod
    def get_appointments(self, user_id: str) -> Sequence[Appointment]:
        """All logged appointments, in any order."""

    @abstractmethod
    def get_recent_user_messages(self, user_id: str, limit: int) -> Sequence[str]:
        """Up to ``limit`` of the user's own past messages, oldest first."""


class ContextEngine:
    """Builds the (profile, ChatContext) pair for a new chat session."""

    def __init__(self,
                 data_source: ContextDataSource,
                 now: Optional[Callable[[], datetime]] = None,
                 max_appointments: int = MAX_UPCOMING_APPOINTMENTS,
                 memory_limit: int = MEMORY_EXCERPT_LIMIT):
        self.data_source = data_source
        self.now = now or datetime.now
        self.max_appointments = max_appointments
        self.memory_limit = memory_limit

    def load(self, user_id: str) -> Tuple[Optional[UserProfile], ChatContext]:
        """
        Fetch everything the system prompt can use for ``user_id``.

        Returns:
            (profile or None, ChatContext) - ready for SessionManager.open.
        """
        with Tracer("load_context") as trace:
            profile = self._fetch("profile", self.data_source.get_user_profile, user_id)
            if isinstance(profile, dict):
                profile = UserProfile.from_dict(profile)

            appointments = self._fetch("appointments", self.data_source.get_appointments, user_id, default=[])
            messages = self._fetch("recent messages", self.data_source.get_recent_user_messages,
                                   user_id, self.memory_limit, default=[])

            context = ChatContext(
                latest_bp=self._fetch("blood pressure", self.data_source.get_latest_blood_pressure, user_id),
                latest_sugar=self._fetch("blood sugar", self.data_source.get_latest_blood_sugar, user_id),
                latest_weight=self._fetch("weight", self.data_source.get_latest_weight, user_id),
                upcoming_appointments=self.upcoming_appointments(appointments),
                recent_topics=self.recent_topics(messages),
            )
            trace.metadata["appointments"] = len(context.upcoming_appointments)
            trace.metadata["topics"] = len(context.recent_topics)

        return profile, context

    def upcoming_appointments(self, appointments: Optional[Sequence[Appointment]]) -> List[Appointment]:
        """Future, not-completed appointments with a readable date and time, soonest first."""
        now = _as_local_naive(self.now())
        upcoming = []
        for appt in appointments or []:
            if appt.is_completed:
                continue
            when = appt.date_time or parse_appointment_datetime(appt)
            if not isinstance(when, datetime):
                logger.debug(f"Skipping appointment with unreadable date/time: {appt.date} {appt.time}")
                continue
            when = _as_local_naive(when)
            if when < now:
                continue
            upcoming.append(replace(appt, date_time=when))

        upcoming.sort(key=lambda a: a.date_time)
        return upcoming[:self.max_appointments]

    def recent_topics(self, messages: Optional[Sequence[str]]) -> List[str]:
        """Newest non-blank messages, oldest first, bounded to the memory limit."""
        texts = [m for m in (messages or []) if isinstance(m, str) and m.strip()]
        if self.memory_limit <= 0:
            return []
        return texts[-self.memory_limit:]

    def _fetch(self, label: str, fetch: Callable[..., Any], *args, default: Any = None) -> Any:
        try:
            result = fetch(*args)
        except Exception as e:
            logger.warning(f"Could not load {label} for context: {e}")
            return default
        return default if result is None else result
