"""Session Service Module

Owns the chat session lifecycle:

    UNINITIALIZED -> OPENING -> ACTIVE -> {ACTIVE, BLOCKED, TERMINATED, ERROR}

This module provides:
1. Opening a provider session seeded with the system prompt
2. A synthetic greeting exchange, so the visible transcript starts on-brand
   without spending a live generation call
3. Closing sessions
"""
import logging
from typing import List, Optional

from core.errors import ConfigurationError, InvalidSessionState, ProviderError
from core.observability import Tracer, traced
from core.provider import ChatProvider
from models.context import ChatContext, UserPreferences, UserProfile
from models.session import ChatSession, ChatTurn, ContentPart, SessionState
from services.prompt_composer import compose_system_prompt, resolve_user_context

logger = logging.getLogger(__name__)

# Acknowledgement turn used when the system prompt has to travel in the transcript
SYSTEM_PROMPT_ACK = (
    "Understood. I will follow these instructions and safety guidelines, "
    "using the provided context appropriately."
)

SAFETY_DISCLAIMER = (
    "Please remember, I'm here to provide general information and support, but I cannot "
    "offer medical advice. It's crucial to talk to your doctor or midwife about any personal "
    "health questions or symptoms."
)


def build_seed_turns(prefs: Optional[UserPreferences],
                     profile: Optional[UserProfile]) -> List[ChatTurn]:
    """
    The synthetic opening exchange: one user statement and one welcome.

    The welcome names the user, echoes their stated feeling and restates the
    core safety disclaimer.
    """
    snapshot = resolve_user_context(prefs, profile)
    name = snapshot.name if profile is not None and profile.name else "there"
    week_mention = f" at {snapshot.weeks_pregnant} weeks" if snapshot.weeks_pregnant is not None else ""

    if snapshot.feeling:
        opener = f"Hi, I'm feeling {snapshot.feeling}{week_mention}."
        empathy = f"It's completely understandable to feel {snapshot.feeling}{week_mention}."
    else:
        opener = f"Hi, I'd like some support{week_mention}."
        empathy = f"It's lovely to hear from you{week_mention}."
    if snapshot.specific_concerns:
        opener += f" I'd also like to talk about: {snapshot.specific_concerns}."

    welcome = (
        f"Hello {name}! Thanks for reaching out. {empathy} I have the context you shared "
        f"and from your profile to help inform our conversation.\n\n"
        f"{SAFETY_DISCLAIMER}\n\n"
        f"How can I help you today?"
    )
    return [ChatTurn.user(ContentPart.from_text(opener)), ChatTurn.assistant(welcome)]


class SessionManager:
    """
    Opens and closes chat sessions against one injected ChatProvider.

    Sessions are independent: each holds its own transcript and state, so
    distinct sessions may be used concurrently.
    """

    def __init__(self, provider: ChatProvider):
        self.provider = provider

    def open(self,
             prefs: Optional[UserPreferences],
             profile: Optional[UserProfile],
             context: Optional[ChatContext],
             session: Optional[ChatSession] = None) -> ChatSession:
        """
        Open a session seeded with the system prompt and greeting.

        Args:
            prefs: Pre-chat form answers.
            profile: Stored profile, or None.
            context: Session-open snapshot of readings, appointments and topics.
            session: An UNINITIALIZED session to (re)open, e.g. after a QuotaError.

        Raises:
            ConfigurationError: the provider client was never initialized.
            AuthError | QuotaError | TransportError | UnknownError: opening failed;
                the session stays UNINITIALIZED.
        """
        if not self.provider.is_configured:
            logger.error("Cannot open chat session: provider client is not configured")
            raise ConfigurationError("Chat provider client was never initialized")

        session = session or ChatSession()
        if session.state != SessionState.UNINITIALIZED:
            raise InvalidSessionState(f"Cannot open a session in state {session.state.value}")

        session.state = SessionState.OPENING
        with Tracer("open_session", session.session_id):
            system_prompt = compose_system_prompt(prefs, profile, context)
            logger.debug(f"System prompt for session {session.session_id}:\n{system_prompt}")
            seed = build_seed_turns(prefs, profile)

            try:
                if self.provider.supports_system_instruction:
                    handle = self.provider.open(system_prompt)
                    transcript = seed
                    hidden = 0
                else:
                    handle = self.provider.open(None)
                    transcript = [
                        ChatTurn.user(ContentPart.from_text(system_prompt)),
                        ChatTurn.assistant(SYSTEM_PROMPT_ACK),
                    ] + seed
                    hidden = 2
            except Exception as e:
                session.state = SessionState.UNINITIALIZED
                error = e if isinstance(e, ProviderError) else self.provider.translate_error(e)
                logger.error(f"Failed to open session {session.session_id}: {type(error).__name__}")
                if error is e:
                    raise
                raise error from e

            session.system_prompt = system_prompt
            session.provider_handle = handle
            session.transcript = list(transcript)
            session.hidden_turns = hidden
            session.consecutive_blocks = 0
            session.state = SessionState.ACTIVE

        logger.info(f"Opened session: {session.session_id}")
        return session

    @traced("close_session")
    def close(self, session: ChatSession) -> ChatSession:
        """End an active session. Closing a finished session is a no-op."""
        if session.state in (SessionState.TERMINATED, SessionState.ERROR, SessionState.BLOCKED):
            return session
        if session.state != SessionState.ACTIVE:
            raise InvalidSessionState(f"Cannot close a session in state {session.state.value}")

        session.state = SessionState.TERMINATED
        session.provider_handle = None
        logger.info(f"Closed session: {session.session_id}")
        return session
