"""Unit tests for daily performance reports."""

import pytest

from agentforge.persistence import AgentProfile, ImprovementRequest, Level, RequestType
from agentforge.reporting import PerformanceReporter, derive_concerns, derive_highlights


def _profile(**overrides):
    values = dict(id="a1", name="Email Composer", category="c", specialization="s")
    values.update(overrides)
    return AgentProfile(**values)


@pytest.fixture
def reporter(store, clock):
    return PerformanceReporter(store, clock=clock)


def _propose(store, agent_id, description):
    return store.create_improvement_request(ImprovementRequest(
        agent_id=agent_id,
        request_type=RequestType.NEW_TOOL,
        title=description,
        description=description,
        benefit_estimate="b",
        cost_estimate=15,
        risk_level=Level.LOW,
        priority=Level.MEDIUM,
    ))


class TestDerivedLists:

    def test_email_composer_highlights(self):
        profile = _profile(success_rate=95, performance_rating=90, avg_response_time=2000, tasks_completed=150)

        assert derive_highlights(profile, learnings_today=0) == [
            "Excellent success rate: 95%",
            "High performance rating: 90/100",
        ]
        assert derive_concerns(profile, pending_count=0) == []

    def test_struggling_agent_concerns(self):
        profile = _profile(success_rate=65, performance_rating=60, avg_response_time=12000, tasks_completed=20)

        assert derive_highlights(profile, learnings_today=0) == []
        assert derive_concerns(profile, pending_count=0) == [
            "Success rate below target: 65%",
            "Response time high: 12000ms",
        ]

    def test_active_learning_needs_more_than_five(self):
        profile = _profile()
        assert derive_highlights(profile, learnings_today=5) == []
        assert derive_highlights(profile, learnings_today=6) == ["Active learning: 6 new learnings today"]

    def test_review_backlog(self):
        profile = _profile(success_rate=80)
        assert derive_concerns(profile, pending_count=10) == []
        assert derive_concerns(profile, pending_count=11) == ["11 pending improvement requests need review"]


class TestGenerateDailyReport:

    def test_report_reflects_store(self, reporter, store, agent, clock):
        store.record_execution(agent.id, True, 800)
        store.append_learning(agent.id, "Client prefers bullet points")
        _propose(store, agent.id, "Add Grammarly")

        report = reporter.generate_daily_report(agent.id)

        assert report.agent_id == agent.id
        assert report.agent_name == "Email Composer"
        assert report.report_date == clock.now.astimezone().date()
        assert report.tasks_completed == 1
        assert report.success_rate == 100
        assert report.avg_response_time == 800
        assert report.learnings == ("Client prefers bullet points",)
        assert report.improvements == ("Add Grammarly",)
        assert report.pending_improvements == 1
        assert report.highlights == ("Excellent success rate: 100%",)

    def test_generation_is_idempotent(self, reporter, store, agent):
        store.record_execution(agent.id, False, 15000)

        first = reporter.generate_daily_report(agent.id)
        second = reporter.generate_daily_report(agent.id)

        assert first == second
        assert first.concerns == ("Success rate below target: 0%", "Response time high: 15000ms")
        assert store.list_daily_reports(agent.id) == []

    def test_old_learnings_are_excluded(self, reporter, store, agent, clock):
        store.append_learning(agent.id, "yesterday")
        clock.advance(days=1)

        assert reporter.generate_daily_report(agent.id).learnings == ()

    def test_scenario_via_profile_snapshot(self, reporter, store, agent, mocker):
        mocker.patch.object(store, "get_profile", return_value=_profile(
            id=agent.id, success_rate=95, performance_rating=90, avg_response_time=2000, tasks_completed=150,
        ))

        report = reporter.generate_daily_report(agent.id)

        assert report.highlights == ("Excellent success rate: 95%", "High performance rating: 90/100")
        assert report.concerns == ()

    def test_to_dict(self, reporter, agent):
        payload = reporter.generate_daily_report(agent.id).to_dict()

        assert payload["agent_name"] == "Email Composer"
        assert payload["date"] == reporter.generate_daily_report(agent.id).report_date.isoformat()
        assert payload["learnings"] == []


class TestSaveDailyReport:

    def test_save_persists_and_refreshes_rating(self, reporter, store, agent):
        store.record_execution(agent.id, True, 500)

        report = reporter.save_daily_report(agent.id)

        saved = store.list_daily_reports(agent.id)
        assert len(saved) == 1
        assert saved[0].report_date == report.report_date
        assert saved[0].success_rate == 100
        assert saved[0].highlights == report.highlights
        # 0.4 * 100 + 0.4 * 50 + 0.2 * (1 / 30 * 100) = 60.67
        assert store.get_profile(agent.id).performance_rating == 61
        assert report.performance_rating == 50

    def test_saved_report_keeps_texts_for_review(self, reporter, store, agent):
        store.append_learning(agent.id, "Client prefers bullet points")
        _propose(store, agent.id, "Research and integrate Grammarly")

        reporter.save_daily_report(agent.id)

        pending = store.list_pending_reports()
        assert len(pending) == 1
        assert pending[0].agent_name == "Email Composer"
        assert pending[0].learning_outcomes == ("Client prefers bullet points",)
        assert pending[0].recommendations == ("Research and integrate Grammarly",)
        assert pending[0].improvements_count == 1

    def test_saving_twice_keeps_one_row_per_day(self, reporter, store, agent):
        reporter.save_daily_report(agent.id)
        store.record_execution(agent.id, True, 500)
        reporter.save_daily_report(agent.id)

        saved = store.list_daily_reports(agent.id)
        assert len(saved) == 1
        assert saved[0].tasks_completed == 1
