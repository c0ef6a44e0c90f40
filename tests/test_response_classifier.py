"""Tests for provider signal classification."""
from core.provider import FinishSignal, ProviderResponse
from models.outcome import OutcomeKind
from services.response_classifier import INTERRUPTING_OUTCOMES, classify


class TestClassify:
    """Each signal maps to exactly one outcome kind."""

    def test_ok(self):
        assert classify(ProviderResponse(text="hi", finish_signal=FinishSignal.STOP)) == OutcomeKind.OK

    def test_blocked(self):
        assert classify(ProviderResponse(block_reason="SAFETY")) == OutcomeKind.BLOCKED

    def test_block_wins_over_finish_signal(self):
        response = ProviderResponse(text="x", block_reason="OTHER", finish_signal=FinishSignal.MAX_TOKENS)
        assert classify(response) == OutcomeKind.BLOCKED

    def test_safety_stop(self):
        response = ProviderResponse(text="partial", finish_signal=FinishSignal.SAFETY)
        assert classify(response) == OutcomeKind.PARTIAL_SAFETY_STOP

    def test_truncated(self):
        response = ProviderResponse(text="long", finish_signal=FinishSignal.MAX_TOKENS)
        assert classify(response) == OutcomeKind.TRUNCATED

    def test_copyright_stop(self):
        assert classify(ProviderResponse(finish_signal=FinishSignal.RECITATION)) == OutcomeKind.COPYRIGHT_STOP

    def test_empty(self):
        assert classify(ProviderResponse()) == OutcomeKind.EMPTY
        assert classify(ProviderResponse(finish_signal=FinishSignal.STOP)) == OutcomeKind.EMPTY

    def test_whitespace_only_text_is_empty(self):
        assert classify(ProviderResponse(text="\n", finish_signal=FinishSignal.STOP)) == OutcomeKind.EMPTY
        assert classify(ProviderResponse(text="  \t ")) == OutcomeKind.EMPTY

    def test_transport_error(self):
        assert classify(ConnectionError("reset")) == OutcomeKind.TRANSPORT_ERROR

    def test_unknown_finish_falls_through(self):
        assert classify(ProviderResponse(text="hi", finish_signal=FinishSignal.OTHER)) == OutcomeKind.OK
        assert classify(ProviderResponse(finish_signal=FinishSignal.OTHER)) == OutcomeKind.EMPTY


class TestInterruptingOutcomes:
    """Outcomes that end text forwarding in a stream."""

    def test_interrupting_kinds(self):
        for response in (ProviderResponse(block_reason="SAFETY"),
                         ProviderResponse(finish_signal=FinishSignal.SAFETY),
                         ProviderResponse(finish_signal=FinishSignal.RECITATION)):
            assert classify(response) in INTERRUPTING_OUTCOMES

    def test_non_interrupting_kinds(self):
        assert classify(ProviderResponse(text="hi")) not in INTERRUPTING_OUTCOMES
        assert classify(ProviderResponse(text="hi", finish_signal=FinishSignal.MAX_TOKENS)) not in INTERRUPTING_OUTCOMES
