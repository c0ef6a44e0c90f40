"""Message Dispatcher - Whole-Response and Streaming Sends

Forwards a user turn to an ACTIVE session and turns whatever the provider
produces into user-facing text.

Design Decisions:
    1. Content-safety outcomes (blocked, safety stop, copyright stop,
       truncation, empty) are successful calls carrying an explanatory
       message. Only auth/quota/transport failures are raised.
    2. Streaming uses a single "notice emitted" latch local to each call: the
       first block/safety signal ends text forwarding, and no second notice
       is ever sent for the same message.
    3. The dispatcher never adds its own disclaimers to OK text; those come
       from the system prompt.
    4. Transcript commit: OK/TRUNCATED keep the exchange; an image the model
       only "looked at" keeps the acknowledgement; refused or empty turns are
       dropped so they are not replayed on the next call.
"""
import logging
from typing import Callable, Iterable, Optional, Union

from config.settings import MAX_CONSECUTIVE_BLOCKS
from core.errors import (
    AuthError,
    EmptyMessageError,
    InvalidSessionState,
    MomCareError,
    ProviderError,
    UnsupportedContentError,
)
from core.observability import Tracer
from core.provider import ChatProvider, ProviderResponse
from models.outcome import OutcomeKind, ResponseOutcome
from models.session import ChatSession, ChatTurn, ContentPart, InlineAttachment, SessionState
from services.response_classifier import INTERRUPTING_OUTCOMES, classify

logger = logging.getLogger(__name__)

ContentInput = Union[str, ContentPart, InlineAttachment]

# === Whole-response messages ===
BLOCKED_MESSAGE = (
    "I apologize, but I can't respond to that specific request due to safety guidelines ({reason}). "
    "Could we perhaps talk about something else related to your pregnancy journey? "
    "Remember to consult your doctor for medical advice."
)
SAFETY_STOP_MESSAGE = (
    "I couldn't fully complete that response due to safety guidelines. "
    "Please ask differently or consult your healthcare provider."
)
COPYRIGHT_STOP_MESSAGE = (
    "My response was stopped because it may have contained copyrighted material. "
    "Please try rephrasing your message."
)
TRUNCATION_NOTICE = (
    "\n\n[My response was cut short because it reached the maximum length. "
    "Feel free to ask me to continue or ask a more specific question.]"
)
ATTACHMENT_ACKNOWLEDGEMENT = (
    "I've received your image. What would you like to know about it? I can describe what I see, "
    "but I can't diagnose anything from a picture, so please show any visual symptom to your "
    "doctor or midwife in person."
)
EMPTY_RESPONSE_MARKER = "[empty response]"

# === Streaming notices ===
STREAM_BLOCKED_NOTICE = (
    "\n[My response was interrupted due to safety guidelines ({reason}). Please ask differently. "
    "Remember to consult your doctor for medical advice.]"
)
STREAM_FINAL_BLOCKED_NOTICE = (
    "\n[My response couldn't be fully completed due to safety guidelines ({reason}). "
    "Please ask differently or consult your healthcare provider.]"
)
STREAM_SAFETY_NOTICE = (
    "\n[My response generation was stopped due to safety guidelines. "
    "Please rephrase or consult your provider.]"
)
STREAM_COPYRIGHT_NOTICE = "\n[My response was stopped as it may have contained copyrighted material.]"
STREAM_TRUNCATION_NOTICE = (
    "\n[My response may be incomplete as it reached the maximum length. "
    "Ask me to continue or ask a more specific question.]"
)


def build_outcome(kind: OutcomeKind, response: ProviderResponse, has_attachments: bool) -> ResponseOutcome:
    """Attach the user-facing notice for a classified whole response."""
    if kind == OutcomeKind.BLOCKED:
        return ResponseOutcome(kind, notice=BLOCKED_MESSAGE.format(reason=response.block_reason),
                               block_reason=response.block_reason)
    if kind == OutcomeKind.PARTIAL_SAFETY_STOP:
        return ResponseOutcome(kind, text=response.text, notice=SAFETY_STOP_MESSAGE)
    if kind == OutcomeKind.COPYRIGHT_STOP:
        return ResponseOutcome(kind, text=response.text, notice=COPYRIGHT_STOP_MESSAGE)
    if kind == OutcomeKind.TRUNCATED:
        return ResponseOutcome(kind, text=response.text, notice=TRUNCATION_NOTICE)
    if kind == OutcomeKind.EMPTY:
        notice = ATTACHMENT_ACKNOWLEDGEMENT if has_attachments else EMPTY_RESPONSE_MARKER
        return ResponseOutcome(kind, notice=notice)
    return ResponseOutcome(kind, text=response.text)


def _stream_notice(kind: OutcomeKind, reason: Optional[str], during_stream: bool) -> str:
    if kind == OutcomeKind.BLOCKED:
        template = STREAM_BLOCKED_NOTICE if during_stream else STREAM_FINAL_BLOCKED_NOTICE
        return template.format(reason=reason)
    if kind == OutcomeKind.COPYRIGHT_STOP:
        return STREAM_COPYRIGHT_NOTICE
    return STREAM_SAFETY_NOTICE


class MessageDispatcher:
    """
    Sends user turns to active sessions.

    Attributes:
        provider: The ChatProvider the sessions were opened with.
        max_consecutive_blocks: Blocked outcomes in a row before the session latches BLOCKED.
    """

    def __init__(self, provider: ChatProvider, max_consecutive_blocks: int = MAX_CONSECUTIVE_BLOCKS):
        self.provider = provider
        self.max_consecutive_blocks = max_consecutive_blocks

    # === Whole response ===

    def send(self, session: ChatSession, contents: Union[ContentInput, Iterable[ContentInput]]) -> ResponseOutcome:
        """
        Send a turn and return the classified, user-ready outcome.

        Raises:
            InvalidSessionState: the session is not ACTIVE.
            EmptyMessageError: no text and no attachments.
            AuthError | QuotaError | TransportError | UnknownError: the call failed.
        """
        self._require_active(session)
        turn = self._build_user_turn(contents)

        with Tracer("send", session.session_id) as trace:
            try:
                response = self.provider.send(session.provider_handle, session.transcript, turn)
            except Exception as e:
                error = self._fail(session, e)
                if error is e:
                    raise
                raise error from e

            kind = classify(response)
            trace.metadata["outcome"] = kind.value
            if kind != OutcomeKind.OK:
                logger.warning(f"Session {session.session_id}: response classified as {kind.value}")
            outcome = build_outcome(kind, response, turn.has_attachments)

        self._commit(session, turn, outcome)
        return outcome

    # === Streaming ===

    def send_stream(self,
                    session: ChatSession,
                    contents: Union[ContentInput, Iterable[ContentInput]],
                    on_chunk: Callable[[str], None],
                    on_error: Callable[[MomCareError], None],
                    on_complete: Callable[[], None]) -> Optional[ResponseOutcome]:
        """
        Send a turn and push the reply to ``on_chunk`` as it arrives.

        Exactly one of ``on_complete()`` or ``on_error(err)`` is called.
        Contract violations (inactive session, empty message) are also
        reported through ``on_error``.

        Returns:
            The final ResponseOutcome, or None if the call failed.
        """
        try:
            self._require_active(session)
            turn = self._build_user_turn(contents)
        except MomCareError as e:
            logger.warning(f"send_stream rejected for session {getattr(session, 'session_id', None)}: {e}")
            on_error(e)
            return None

        with Tracer("send_stream", session.session_id) as trace:
            try:
                outcome = self._stream_turn(session, turn, on_chunk)
                self._commit(session, turn, outcome)
            except Exception as e:
                error = self._fail(session, e)
                trace.error = type(error).__name__
                on_error(error)
                return None
            trace.metadata["outcome"] = outcome.kind.value

        on_complete()
        return outcome

    def _stream_turn(self, session: ChatSession, turn: ChatTurn,
                     on_chunk: Callable[[str], None]) -> ResponseOutcome:
        stream = self.provider.send_stream(session.provider_handle, session.transcript, turn)

        notice_sent = False
        interruption: Optional[OutcomeKind] = None
        block_reason: Optional[str] = None
        notice: Optional[str] = None
        texts = []

        for chunk in stream:
            if notice_sent:
                continue
            kind = classify(chunk)
            if kind in INTERRUPTING_OUTCOMES:
                logger.warning(f"Stream interrupted for session {session.session_id}: {kind.value}")
                notice = _stream_notice(kind, chunk.block_reason, during_stream=True)
                on_chunk(notice)
                notice_sent = True
                interruption, block_reason = kind, chunk.block_reason
                continue
            if chunk.text:
                texts.append(chunk.text)
                on_chunk(chunk.text)

        # Block/finish signals can show up only on the aggregated response
        final = stream.final()
        final_kind = classify(final)
        if not notice_sent and final_kind in INTERRUPTING_OUTCOMES:
            logger.warning(f"Final response for session {session.session_id} classified as {final_kind.value}")
            notice = _stream_notice(final_kind, final.block_reason, during_stream=False)
            on_chunk(notice)
            notice_sent = True
            interruption, block_reason = final_kind, final.block_reason

        text = "".join(texts)
        if interruption is not None:
            return ResponseOutcome(interruption, text=text, notice=notice, block_reason=block_reason)

        if final_kind == OutcomeKind.TRUNCATED:
            on_chunk(STREAM_TRUNCATION_NOTICE)
            return ResponseOutcome(OutcomeKind.TRUNCATED, text=text, notice=STREAM_TRUNCATION_NOTICE)

        if text.strip():
            return ResponseOutcome(OutcomeKind.OK, text=text)

        notice = ATTACHMENT_ACKNOWLEDGEMENT if turn.has_attachments else EMPTY_RESPONSE_MARKER
        on_chunk(notice)
        return ResponseOutcome(OutcomeKind.EMPTY, notice=notice)

    # === Helpers ===

    def _require_active(self, session: ChatSession):
        if session is None or session.state != SessionState.ACTIVE:
            state = session.state.value if session is not None else "missing"
            raise InvalidSessionState(f"Chat session is not active (state: {state})")

    def _build_user_turn(self, contents: Union[ContentInput, Iterable[ContentInput]]) -> ChatTurn:
        if contents is None:
            contents = []
        elif isinstance(contents, (str, ContentPart, InlineAttachment)):
            contents = [contents]
        elif not isinstance(contents, Iterable):
            raise UnsupportedContentError(f"Unsupported message content: {type(contents).__name__}")

        parts = []
        for item in contents:
            if isinstance(item, ContentPart):
                part = item
            elif isinstance(item, InlineAttachment):
                part = ContentPart.from_attachment(item)
            elif isinstance(item, str):
                part = ContentPart.from_text(item)
            else:
                raise UnsupportedContentError(f"Unsupported content part: {type(item).__name__}")
            if not part.is_empty:
                parts.append(part)

        if not parts:
            raise EmptyMessageError("Cannot send an empty message.")
        return ChatTurn.user(*parts)

    def _fail(self, session: ChatSession, exc: Exception) -> ProviderError:
        """Translate a failed call and apply its effect on the session."""
        error = exc if isinstance(exc, ProviderError) else self.provider.translate_error(exc)
        if isinstance(error, AuthError):
            session.state = SessionState.ERROR
        logger.error(
            f"Provider call failed for session {session.session_id}: {type(error).__name__}",
            exc_info=exc,
        )
        return error

    def _commit(self, session: ChatSession, turn: ChatTurn, outcome: ResponseOutcome):
        if outcome.kind == OutcomeKind.BLOCKED:
            session.consecutive_blocks += 1
            if session.consecutive_blocks >= self.max_consecutive_blocks:
                session.state = SessionState.BLOCKED
                logger.warning(
                    f"Session {session.session_id} blocked after "
                    f"{session.consecutive_blocks} consecutive blocked messages"
                )
            return

        session.consecutive_blocks = 0
        if outcome.kind in (OutcomeKind.OK, OutcomeKind.TRUNCATED) and outcome.text.strip():
            session.append_exchange(turn, ChatTurn.assistant(outcome.text))
        elif outcome.kind == OutcomeKind.EMPTY and turn.has_attachments:
            session.append_exchange(turn, ChatTurn.assistant(ATTACHMENT_ACKNOWLEDGEMENT))
