"""End-to-end tests through the application root with a fake provider."""
from chat_app import MomCareChat
from conftest import FakeStream, ok
from models.context import ChatContext, UserPreferences, UserProfile
from models.outcome import OutcomeKind
from models.session import SessionState
from test_context_engine import InMemoryDataSource


class TestMomCareChat:

    def test_start_chat_loads_context_from_data_source(self, provider):
        source = InMemoryDataSource(profile=UserProfile(name="Asha"), messages=["Is coffee okay?"])
        app = MomCareChat(provider=provider, data_source=source)
        session = app.start_chat(UserPreferences(feeling="anxious", weeks_pregnant=20))

        assert session.state == SessionState.ACTIVE
        assert "- Name: Asha" in session.system_prompt
        assert '- "Is coffee okay?"' in session.system_prompt
        assert "20 weeks" in session.visible_transcript[1].text

    def test_explicit_profile_skips_fetch(self, provider):
        app = MomCareChat(provider=provider)
        session = app.start_chat(None, profile=UserProfile(name="Mira"), context=ChatContext())
        assert "- Name: Mira" in session.system_prompt

    def test_full_conversation(self, provider):
        """Open, send, stream with an image, close."""
        app = MomCareChat(provider=provider)
        session = app.start_chat(UserPreferences(weeks_pregnant=24))

        provider.queue(ok("Swollen ankles are common."))
        assert app.send_message(session, "I have swollen ankles").kind == OutcomeKind.OK

        image = app.encode_attachment(b"\x89PNG\r\n\x1a\n", filename="ankle.png")
        provider.queue(FakeStream([ok("I can see "), ok("some swelling.")]))
        chunks, errors, done = [], [], []
        app.send_message_stream(session, "Is this normal?", chunks.append, errors.append,
                                lambda: done.append(True), attachments=[image])

        assert "".join(chunks) == "I can see some swelling."
        assert errors == [] and done == [True]
        _, turn = provider.calls[-1]
        assert turn.has_attachments

        app.close(session)
        assert session.state == SessionState.TERMINATED
        assert app.get_metrics()["total_requests"] > 0

    def test_suggest_starters(self, provider):
        starters = MomCareChat(provider=provider).suggest_starters(UserPreferences(weeks_pregnant=8))
        assert starters[0][0] == "Morning sickness"
