"""Tests for application wiring and the command line interface."""

import json
import logging

import pytest

from agentforge import main as cli
from agentforge.config.settings import ObservabilitySettings, Settings
from agentforge.persistence import RequestStatus
from agentforge.runtime import build_application
from agentforge.utils.error_handler import AgentNotFoundError, GovernanceViolationError

RESEARCH_REPLY = json.dumps({
    "findings": ["Short subject lines get more replies"],
    "recommendations": ["Add support for a new scheduling API"],
    "sources": [],
    "confidence": 80,
})


@pytest.fixture
def app(tmp_path, reasoning_settings, resolver, catalog, rng, clock):
    settings = Settings(reasoning=reasoning_settings)
    return build_application(
        settings,
        model_resolver=resolver,
        db_path=tmp_path / "cli.db",
        catalog=catalog,
        rng=rng,
        clock=clock,
    )


async def _run(app, *argv):
    return await cli.run_command(app, cli.parse_args(list(argv)))


class TestBuildApplication:

    def test_components_share_store_and_catalog(self, app, catalog):
        assert app.catalog is catalog
        assert app.engine.store is app.store
        assert app.learning.triage is app.triage
        assert app.reporter.store is app.store
        assert app.providers.is_configured("openai")

    def test_resolve_agent_id_by_name_or_id(self, app):
        app.store.seed_from_catalog(app.catalog)
        agent_id = app.store.find_profile_by_name("Email Composer").id

        assert app.resolve_agent_id("Email Composer") == agent_id
        assert app.resolve_agent_id(agent_id) == agent_id
        with pytest.raises(AgentNotFoundError):
            app.resolve_agent_id("Nobody")


class TestRunCommand:

    @pytest.mark.asyncio
    async def test_seed(self, app, capsys):
        assert await _run(app, "seed") == 0
        assert "Seeded 2 new agents" in capsys.readouterr().out

        assert await _run(app, "seed") == 0
        assert "Seeded 0 new agents" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_agents_json(self, app, capsys):
        await _run(app, "seed")
        capsys.readouterr()

        assert await _run(app, "--json", "agents", "--category", "Communication & Correspondence") == 0

        listed = json.loads(capsys.readouterr().out)
        assert [a["name"] for a in listed] == ["Email Composer", "Meeting Coordinator"]

    @pytest.mark.asyncio
    async def test_execute_by_name(self, app, resolver, capsys):
        await _run(app, "seed")
        capsys.readouterr()
        resolver.script("openai", '{"success": true, "output": "Draft ready", "reasoning": "ok"}')

        code = await _run(app, "--json", "execute", "Email Composer", "Draft a reply",
                          "--priority", "high", "--context", '{"client": "Acme"}')

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["success"] is True
        assert result["output"] == "Draft ready"
        assert "Successfully completed high priority task" in result["learnings"]

    @pytest.mark.asyncio
    async def test_execute_failure_exit_code(self, app, resolver, capsys):
        await _run(app, "seed")
        resolver.script("openai", RuntimeError("down"))
        resolver.script("claude", RuntimeError("down"))

        assert await _run(app, "execute", "Email Composer", "Draft a reply") == 1
        assert "✗ Failed" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_context_must_be_an_object(self, app):
        await _run(app, "seed")
        with pytest.raises(ValueError):
            await _run(app, "execute", "Email Composer", "Draft", "--context", "[1, 2]")

    @pytest.mark.asyncio
    async def test_research_then_review(self, app, resolver, capsys):
        await _run(app, "seed")
        resolver.script("openai", RESEARCH_REPLY)

        assert await _run(app, "research", "Email Composer") == 0
        capsys.readouterr()

        assert await _run(app, "--json", "pending") == 0
        pending = json.loads(capsys.readouterr().out)
        assert len(pending) == 1
        assert pending[0]["request_type"] == "new_api"

        assert await _run(app, "approve", pending[0]["id"], "--reviewer", "alice") == 0
        assert app.store.get_request(pending[0]["id"]).status == RequestStatus.APPROVED
        assert "✓ Approved" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_reject(self, app, resolver, capsys):
        await _run(app, "seed")
        resolver.script("openai", RESEARCH_REPLY)
        await _run(app, "research", "Email Composer")
        request = app.store.list_all_pending_requests()[0]

        assert await _run(app, "reject", request.id, "--reviewer", "bob", "--reason", "Out of scope") == 0
        assert app.store.get_request(request.id).rejection_reason == "Out of scope"

    @pytest.mark.asyncio
    async def test_report_save(self, app, capsys):
        await _run(app, "seed")
        capsys.readouterr()

        assert await _run(app, "--json", "report", "Email Composer", "--save") == 0

        report = json.loads(capsys.readouterr().out)
        assert report["agent_name"] == "Email Composer"
        agent_id = app.resolve_agent_id("Email Composer")
        assert len(app.store.list_daily_reports(agent_id)) == 1

    @pytest.mark.asyncio
    async def test_analyze_and_leaderboard(self, app, capsys):
        await _run(app, "seed")
        capsys.readouterr()

        assert await _run(app, "--json", "analyze", "Email Composer") == 0
        analysis = json.loads(capsys.readouterr().out)
        assert "Limited experience: 0 tasks completed" in analysis["weaknesses"]

        assert await _run(app, "leaderboard", "--limit", "1") == 0
        assert capsys.readouterr().out.count("\n") == 1

    @pytest.mark.asyncio
    async def test_review_json_output(self, app, resolver, capsys):
        await _run(app, "seed")
        resolver.script("openai", RESEARCH_REPLY)
        await _run(app, "research", "Email Composer")
        request = app.store.list_all_pending_requests()[0]
        capsys.readouterr()

        assert await _run(app, "--json", "approve", request.id, "--reviewer", "alice") == 0

        approved = json.loads(capsys.readouterr().out)
        assert approved["id"] == request.id
        assert approved["status"] == "approved"
        assert approved["reviewed_by"] == "alice"

    @pytest.mark.asyncio
    async def test_leaderboard_json(self, app, capsys):
        await _run(app, "seed")
        capsys.readouterr()

        assert await _run(app, "--json", "leaderboard", "--limit", "1") == 0

        leaders = json.loads(capsys.readouterr().out)
        assert len(leaders) == 1
        assert set(leaders[0]) >= {"id", "name", "performance_rating", "success_rate"}

    @pytest.mark.asyncio
    async def test_saved_report_review_flow(self, app, capsys):
        await _run(app, "seed")
        capsys.readouterr()
        await _run(app, "--json", "report", "Email Composer", "--save")
        report_date = json.loads(capsys.readouterr().out)["date"]

        assert await _run(app, "--json", "reports") == 0
        queue = json.loads(capsys.readouterr().out)
        assert [(r["agent_name"], r["date"], r["status"]) for r in queue] == [
            ("Email Composer", report_date, "pending"),
        ]

        assert await _run(app, "review-report", "Email Composer", report_date, "approved",
                          "--reviewer", "alice") == 0
        assert "✓ Approved report Email Composer" in capsys.readouterr().out
        assert await _run(app, "--json", "reports") == 0
        assert json.loads(capsys.readouterr().out) == []

    @pytest.mark.asyncio
    async def test_reviewing_twice_is_refused(self, app):
        await _run(app, "seed")
        await _run(app, "report", "Email Composer", "--save")
        report = app.store.list_pending_reports()[0]
        await _run(app, "review-report", "Email Composer", report.report_date.isoformat(), "rejected",
                   "--reviewer", "bob")

        with pytest.raises(GovernanceViolationError):
            await _run(app, "review-report", "Email Composer", report.report_date.isoformat(), "approved",
                       "--reviewer", "alice")


class TestMain:

    @pytest.fixture
    def patched(self, app, tmp_path, monkeypatch):
        settings = Settings(observability=ObservabilitySettings(LOG_DIR=str(tmp_path / "logs")))
        monkeypatch.setattr(cli, "get_settings", lambda: settings)
        monkeypatch.setattr(cli, "build_application", lambda settings, db_path=None: app)
        yield app
        logger = logging.getLogger("agentforge")
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []
        logger.propagate = True

    def test_unknown_agent_is_reported(self, patched, capsys):
        assert cli.main(["execute", "Nobody", "Draft"]) == 1
        assert "Agent not found: Nobody" in capsys.readouterr().err

    def test_bad_context_is_a_usage_error(self, patched, capsys):
        cli.main(["seed"])
        assert cli.main(["execute", "Email Composer", "Draft", "--context", "not json"]) == 2

    def test_seed(self, patched):
        assert cli.main(["seed"]) == 0
        assert len(patched.store.list_profiles()) == 2
