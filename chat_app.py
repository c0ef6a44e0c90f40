"""MomCare Chat - Application Root

Wires one chat provider into every service and exposes the operations the
UI layer calls:

- Context assembly (profile, readings, appointments, recent topics)
- Session open/close with a safety-first system prompt
- Whole-response and streaming sends with classified outcomes
- Image attachments
- Conversation starters
- Observability (tracing, metrics)
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from config.settings import GEMINI_MODEL_NAME, GOOGLE_API_KEY, MAX_ATTACHMENT_BYTES
from core.errors import MomCareError
from core.gemini_provider import GeminiChatProvider
from core.observability import get_metrics_summary
from core.provider import ChatProvider
from models.context import ChatContext, UserPreferences, UserProfile
from models.outcome import ResponseOutcome
from models.session import ChatSession, InlineAttachment
from services.context_engine import ContextDataSource, ContextEngine
from services.conversation_starters import suggest_starters
from services.message_dispatcher import MessageDispatcher
from services.session_service import SessionManager
from tools.attachments import encode_attachment

logger = logging.getLogger(__name__)


class MomCareChat:
    """
    Entry point for the MomCare chat pipeline.

    The provider is built once here (or injected, e.g. a fake in tests) and
    shared by the session manager and the dispatcher.

    Attributes:
        provider: ChatProvider used for every session.
        sessions: SessionManager opening and closing sessions.
        dispatcher: MessageDispatcher sending user turns.
        data_source: Default ContextDataSource for start_chat, if any.
    """

    def __init__(self,
                 provider: Optional[ChatProvider] = None,
                 data_source: Optional[ContextDataSource] = None):
        self.provider = provider or GeminiChatProvider(GOOGLE_API_KEY, GEMINI_MODEL_NAME)
        self.sessions = SessionManager(self.provider)
        self.dispatcher = MessageDispatcher(self.provider)
        self.data_source = data_source

        if not self.provider.is_configured:
            logger.warning("MomCare chat started without a configured provider; sessions cannot be opened")

    # === Sessions ===

    def load_context(self, user_id: str,
                     data_source: Optional[ContextDataSource] = None) -> Tuple[Optional[UserProfile], ChatContext]:
        """Fetch the profile and context snapshot for ``user_id``."""
        source = data_source or self.data_source
        if source is None:
            return None, ChatContext()
        return ContextEngine(source).load(user_id)

    def start_chat(self,
                   prefs: Optional[UserPreferences] = None,
                   data_source: Optional[ContextDataSource] = None,
                   profile: Optional[UserProfile] = None,
                   context: Optional[ChatContext] = None,
                   user_id: str = "default_user") -> ChatSession:
        """
        Open a new chat session.

        Explicit ``profile``/``context`` win over whatever the data source
        returns, so callers that already hold them skip the fetch.
        """
        if profile is None or context is None:
            loaded_profile, loaded_context = self.load_context(user_id, data_source)
            profile = profile if profile is not None else loaded_profile
            context = context if context is not None else loaded_context

        return self.sessions.open(prefs, profile, context)

    def close(self, session: ChatSession) -> ChatSession:
        return self.sessions.close(session)

    # === Messages ===

    def send_message(self, session: ChatSession, text: Optional[str],
                     attachments: Sequence[InlineAttachment] = ()) -> ResponseOutcome:
        return self.dispatcher.send(session, self._contents(text, attachments))

    def send_message_stream(self,
                            session: ChatSession,
                            text: Optional[str],
                            on_chunk: Callable[[str], None],
                            on_error: Callable[[MomCareError], None],
                            on_complete: Callable[[], None],
                            attachments: Sequence[InlineAttachment] = ()) -> Optional[ResponseOutcome]:
        return self.dispatcher.send_stream(session, self._contents(text, attachments),
                                           on_chunk, on_error, on_complete)

    def encode_attachment(self, file: Any, filename: Optional[str] = None,
                          mime_type: Optional[str] = None) -> InlineAttachment:
        return encode_attachment(file, filename=filename, mime_type=mime_type,
                                 max_bytes=MAX_ATTACHMENT_BYTES)

    # === Helpers ===

    def suggest_starters(self,
                         prefs: Optional[UserPreferences] = None,
                         profile: Optional[UserProfile] = None,
                         context: Optional[ChatContext] = None,
                         limit: int = 4) -> List[Tuple[str, str]]:
        return suggest_starters(prefs, profile, context, limit=limit)

    def get_metrics(self) -> Dict[str, Any]:
        """Get pipeline metrics summary."""
        return get_metrics_summary()

    @staticmethod
    def _contents(text: Optional[str], attachments: Sequence[InlineAttachment]) -> list:
        contents = [text] if text else []
        contents.extend(attachments or ())
        return contents
