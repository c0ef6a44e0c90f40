"""Response Classifier - provider signals to outcome kinds.

Mapping (checked in this order, first match wins):
    exception                         -> TRANSPORT_ERROR
    block reason (prompt withheld)    -> BLOCKED
    finish SAFETY                     -> PARTIAL_SAFETY_STOP
    finish MAX_TOKENS                 -> TRUNCATED
    finish RECITATION                 -> COPYRIGHT_STOP
    non-blank text                    -> OK
    empty or whitespace-only text     -> EMPTY

Unrecognized finish signals (FinishSignal.OTHER) fall through to the
emptiness check.
"""
import logging
from typing import Union

from core.provider import FinishSignal, ProviderResponse
from models.outcome import OutcomeKind

logger = logging.getLogger(__name__)

_FINISH_OUTCOMES = {
    FinishSignal.SAFETY: OutcomeKind.PARTIAL_SAFETY_STOP,
    FinishSignal.MAX_TOKENS: OutcomeKind.TRUNCATED,
    FinishSignal.RECITATION: OutcomeKind.COPYRIGHT_STOP,
}

# Outcomes that end text forwarding for a message
INTERRUPTING_OUTCOMES = frozenset({
    OutcomeKind.BLOCKED,
    OutcomeKind.PARTIAL_SAFETY_STOP,
    OutcomeKind.COPYRIGHT_STOP,
})


def classify(response: Union[ProviderResponse, BaseException]) -> OutcomeKind:
    """Map one provider response (or the exception that replaced it) to an outcome kind."""
    if isinstance(response, BaseException):
        return OutcomeKind.TRANSPORT_ERROR

    if response.block_reason:
        return OutcomeKind.BLOCKED

    kind = _FINISH_OUTCOMES.get(response.finish_signal)
    if kind is not None:
        return kind

    if response.finish_signal == FinishSignal.OTHER:
        logger.warning("Unrecognized finish signal, classifying by content")

    if response.text and response.text.strip():
        return OutcomeKind.OK
    return OutcomeKind.EMPTY
