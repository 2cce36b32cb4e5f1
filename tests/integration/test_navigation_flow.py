"""
Integration Tests for the Tutor Navigation Flow.

Drives TutorApp end to end over in-memory stores and a fake provider:
1. Login / forced password rotation / logout
2. Topic selection, chat and auto-save
3. Session continuity across restarts
4. Coach dashboard, analytics and roster import

Run: pytest tests/integration/test_navigation_flow.py -v
"""

import random

import pytest

from feynman.accounts.credential_store import COACH_PASSWORD, COACH_USERNAME, RosterEntry
from feynman.core.errors import NotFound, ProviderFailure, ValidationFailure
from feynman.core.models import Sender
from feynman.core.topics import CONCRETE_TOPICS, RANDOM_TOPIC
from feynman.navigation.app import WELCOME_MESSAGE_ID, TutorApp, is_giving_up
from feynman.navigation.machine import (
    ChangePassword,
    CoachAnalytics,
    CoachDashboard,
    Login,
    MistakeNotebook,
    ProblemActive,
    TopicSelection,
)

pytestmark = pytest.mark.integration


def _restart(app):
    """A new TutorApp over the same stores, as after a process restart."""
    fresh = TutorApp(
        credentials=app.credentials,
        mistakes=app.mistakes,
        sessions=app.sessions,
        provider=app.provider,
        rng=random.Random(1),
        clock=app.clock,
    )
    fresh.start()
    return fresh


class TestAuthentication:
    def test_default_student_lands_on_topics(self, app):
        app.login("test", "test")

        assert app.state == TopicSelection()
        assert app.active_mistakes == []

    def test_first_login_overlay_suppressed(self, app):
        app.login("test", "test")
        assert app.achievements is None

    def test_second_login_shows_achievements(self, app):
        app.login("test", "test")
        app.logout()

        app.login("test", "test")

        assert app.achievements is not None
        assert app.previous_login is not None
        assert "newbie" in app.achievements.unlocked_ids

    def test_imported_student_must_rotate_password(self, app):
        app.credentials.register_batch([RosterEntry("Alice", "alice")])

        app.login("alice", "alice")
        assert app.state == ChangePassword()

        with pytest.raises(ValidationFailure):
            app.change_password("short", "short")
        assert app.state == ChangePassword()

        app.change_password("longer-secret", "longer-secret")
        assert app.state == TopicSelection()
        assert app.user.is_first_login is False
        assert app.achievements is None

    def test_coach_lands_on_dashboard(self, app):
        app.login(COACH_USERNAME, COACH_PASSWORD)
        assert app.state == CoachDashboard()

    def test_logout_clears_state(self, app, make_problem, mistake_store):
        mistake_store.save_mistakes("student_test_default", [make_problem("p1")])
        app.login("test", "test")

        app.logout()

        assert app.state == Login()
        assert app.user is None
        assert app.active_mistakes == []
        assert app.current_problem is None
        assert app.credentials.current_user() is None

    def test_login_only_from_login_state(self, app):
        app.login("test", "test")
        with pytest.raises(ValidationFailure):
            app.login("test", "test")


class TestProblemFlow:
    @pytest.mark.asyncio
    async def test_select_topic_opens_problem_with_welcome(self, app, provider):
        app.login("test", "test")

        problem = await app.select_topic("Analytic Geometry")

        assert app.state == ProblemActive(problem.id)
        assert provider.generated_topics == ["Analytic Geometry"]
        history = app.current_problem.chat_history
        assert [m.id for m in history] == [WELCOME_MESSAGE_ID]
        assert history[0].sender == Sender.ASSISTANT

    @pytest.mark.asyncio
    async def test_random_topic_resolved_before_generation(self, app, provider, session_store):
        app.login("test", "test")

        for _ in range(25):
            problem = await app.select_topic(RANDOM_TOPIC)
            assert problem.topic in CONCRETE_TOPICS
            assert session_store.get_last_session("student_test_default").topic == problem.topic
            app.back_to_topics()

        assert RANDOM_TOPIC not in provider.generated_topics

    @pytest.mark.asyncio
    async def test_provider_error_keeps_topic_selection(self, app, provider):
        app.login("test", "test")
        provider.raise_on_generate = RuntimeError("network down")

        with pytest.raises(ProviderFailure):
            await app.select_topic("Analytic Geometry")

        assert app.state == TopicSelection()
        assert app.loading is False

    @pytest.mark.asyncio
    async def test_send_message_appends_reply(self, app, provider):
        app.login("test", "test")
        await app.select_topic("Limits & Continuity")

        reply = await app.send_message("Is the answer 1?")

        history = app.current_problem.chat_history
        assert [m.sender for m in history] == [Sender.ASSISTANT, Sender.USER, Sender.ASSISTANT]
        assert history[-1] == reply
        assert reply.text == provider.reply
        # the evaluated history excludes the message being sent
        _, evaluated_history, _, text = provider.evaluations[0]
        assert [m.id for m in evaluated_history] == [WELCOME_MESSAGE_ID]
        assert text == "Is the answer 1?"

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, app):
        app.login("test", "test")
        await app.select_topic("Limits & Continuity")

        with pytest.raises(ValidationFailure):
            await app.send_message("   ")

    @pytest.mark.asyncio
    async def test_give_up_keyword_auto_saves_once(self, app, mistake_store):
        app.login("test", "test")
        problem = await app.select_topic("Limits & Continuity")

        await app.send_message("This is too hard, I give up")
        await app.send_message("还是不会")

        saved = mistake_store.get_mistakes("student_test_default")
        assert [p.id for p in saved] == [problem.id]
        assert saved[0].timestamp is not None

    @pytest.mark.asyncio
    async def test_chat_propagates_into_archive(self, app, mistake_store):
        app.login("test", "test")
        await app.select_topic("Limits & Continuity")
        assert app.toggle_mistake() is True
        archived_at = app.active_mistakes[0].timestamp

        await app.send_message("Try substitution?")

        saved = mistake_store.get_mistakes("student_test_default")[0]
        assert len(saved.chat_history) == 3
        assert saved.timestamp == archived_at

    @pytest.mark.asyncio
    async def test_toggle_twice_removes(self, app, mistake_store):
        app.login("test", "test")
        await app.select_topic("Limits & Continuity")

        app.toggle_mistake()
        assert app.toggle_mistake() is False

        assert mistake_store.get_mistakes("student_test_default") == []

    @pytest.mark.asyncio
    async def test_stale_reply_dropped(self, app, provider):
        app.login("test", "test")
        await app.select_topic("Limits & Continuity")
        provider.before_reply = app.back_to_topics

        reply = await app.send_message("Is it 0?")

        assert reply is None
        assert app.state == TopicSelection()
        assert app.current_problem is None


class TestSessionContinuity:
    @pytest.mark.asyncio
    async def test_restart_resumes_active_problem(self, app):
        app.login("test", "test")
        problem = await app.select_topic("Series & Sequences")
        await app.send_message("Ratio test?")

        resumed = _restart(app)

        assert resumed.state == ProblemActive(problem.id)
        assert len(resumed.current_problem.chat_history) == 3
        assert resumed.achievements is None

    @pytest.mark.asyncio
    async def test_back_clears_pointer(self, app, session_store):
        app.login("test", "test")
        await app.select_topic("Series & Sequences")

        app.back_to_topics()

        assert session_store.get_last_session("student_test_default") is None
        assert _restart(app).state == TopicSelection()

    @pytest.mark.asyncio
    async def test_logout_keeps_pointer_for_next_login(self, app):
        app.login("test", "test")
        problem = await app.select_topic("Series & Sequences")

        app.logout()
        app.login("test", "test")

        assert app.state == ProblemActive(problem.id)

    def test_restart_without_session_stays_on_login(self, app):
        assert _restart(app).state == Login()


class TestNotebook:
    @pytest.mark.asyncio
    async def test_open_and_delete_archived_problem(self, app, mistake_store, make_problem):
        mistake_store.save_mistakes(
            "student_test_default",
            [make_problem("old1").archived_copy(1), make_problem("old2").archived_copy(2)],
        )
        app.login("test", "test")
        app.open_notebook()
        assert app.state == MistakeNotebook()

        app.delete_mistake("old1")
        assert [p.id for p in mistake_store.get_mistakes("student_test_default")] == ["old2"]

        opened = app.open_archived_problem("old2")
        assert app.state == ProblemActive("old2")
        assert opened.chat_history[0].id == WELCOME_MESSAGE_ID
        assert app.is_saved()

    def test_open_unknown_archived_problem(self, app):
        app.login("test", "test")
        app.open_notebook()

        with pytest.raises(NotFound):
            app.open_archived_problem("missing")


class TestCoachFlow:
    def test_import_and_analyze_student(self, app, mistake_store, make_problem):
        app.login(COACH_USERNAME, COACH_PASSWORD)

        count, parsed = app.import_roster([["name", "username"], ["Bob", "bob"], ["", "x"]])
        assert count == 1
        assert len(parsed.rejected) == 1

        bob = app.credentials.find_by_username("bob")
        mistake_store.save_mistakes(bob.id, [make_problem("b1", topic="Analytic Geometry")])

        app.select_student(bob.id)
        assert app.state == CoachAnalytics(bob.id)
        assert [p.id for p in app.active_mistakes] == ["b1"]

        app.return_to_dashboard()
        assert app.state == CoachDashboard()
        assert app.active_mistakes == []

    @pytest.mark.asyncio
    async def test_study_report_uses_selected_archive(self, app, provider, mistake_store, make_problem):
        mistake_store.save_mistakes("student_test_default", [make_problem("t1")])
        app.login(COACH_USERNAME, COACH_PASSWORD)
        app.select_student("student_test_default")

        report = await app.study_report()

        assert report == "Report over 1 problem(s)"
        assert [p.id for p in provider.summaries[0]] == ["t1"]

    def test_coach_toggle_is_noop(self, app, mistake_store, make_problem):
        mistake_store.save_mistakes("student_test_default", [make_problem("t1")])
        app.login(COACH_USERNAME, COACH_PASSWORD)
        app.select_student("student_test_default")

        assert app.toggle_mistake() is False
        assert [p.id for p in mistake_store.get_mistakes("student_test_default")] == ["t1"]
        assert mistake_store.get_mistakes("admin_default") == []

    def test_reset_password_forces_rotation(self, app):
        app.login(COACH_USERNAME, COACH_PASSWORD)
        app.reset_student_password("student_test_default")
        app.logout()

        app.login("test", "test")

        assert app.state == ChangePassword()

    def test_search_students(self, app):
        app.credentials.register_batch([RosterEntry("Alice Zhang", "alice"), RosterEntry("Bob", "bob")])
        app.login(COACH_USERNAME, COACH_PASSWORD)

        assert [s.username for s in app.list_students("zhang")] == ["alice"]
        assert len(app.list_students()) == 3

    @pytest.mark.asyncio
    async def test_open_problem_listed_for_coach(self, app):
        app.login("test", "test")
        await app.select_topic("Analytic Geometry")
        app.logout()

        app.login(COACH_USERNAME, COACH_PASSWORD)

        assert app.students_with_open_problem() == {"student_test_default"}

    def test_export_report(self, app, tmp_path):
        app.login(COACH_USERNAME, COACH_PASSWORD)
        assert app.export_report(tmp_path / "out.csv") == 1
        assert (tmp_path / "out.csv").read_text(encoding="utf-8").startswith("name,username,status")

    def test_student_cannot_use_coach_actions(self, app):
        app.login("test", "test")
        with pytest.raises(ValidationFailure):
            app.list_students()


def test_give_up_keywords():
    assert is_giving_up("I have NO IDEA")
    assert is_giving_up("这题太难了")
    assert not is_giving_up("x = 3")
