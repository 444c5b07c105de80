"""AgentForge CLI entrypoint.

Usage:
    # Create profiles for every catalog definition
    agentforge seed

    # List agents (optionally one category)
    agentforge agents --category "Content Creation"

    # Run a task; agents are referenced by id or by name
    agentforge execute "Email Composer" "Draft a follow-up to yesterday's client call" \\
        --priority high --context '{"client": "Acme"}'

    # Daily research, report and analysis
    agentforge research "Email Composer"
    agentforge report "Email Composer" --save
    agentforge analyze "Email Composer"

    # Review queue
    agentforge pending
    agentforge approve <request_id> --reviewer alice
    agentforge reject <request_id> --reviewer alice --reason "Out of scope"

    # Saved daily reports awaiting review
    agentforge reports
    agentforge review-report "Email Composer" 2026-03-10 approved --reviewer alice
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, Sequence

from agentforge.config import get_settings
from agentforge.execution.types import Task, TaskPriority
from agentforge.persistence import AgentProfile, DailyReportRecord, ImprovementRequest, RequestStatus
from agentforge.runtime import Application, build_application
from agentforge.utils import AgentForgeError, log_error, setup_logging

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="agentforge",
        description="AgentForge - self-improving specialized agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", type=str, help="SQLite database path (default: AGENTFORGE_DB_PATH)")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("seed", help="Create profiles for all catalog definitions")

    agents = commands.add_parser("agents", help="List agent profiles")
    agents.add_argument("--category", type=str, help="Only this category")
    agents.add_argument("--all", action="store_true", help="Include archived agents")

    execute = commands.add_parser("execute", help="Execute a task with an agent")
    execute.add_argument("agent", help="Agent id or name")
    execute.add_argument("description", help="Task description")
    execute.add_argument(
        "--priority",
        choices=[p.value for p in TaskPriority],
        default=TaskPriority.MEDIUM.value,
        help="Task priority (default: medium)",
    )
    execute.add_argument("--context", type=str, help="Task context (JSON object)")

    research = commands.add_parser("research", help="Run the daily research cycle for an agent")
    research.add_argument("agent", help="Agent id or name")

    report = commands.add_parser("report", help="Show today's performance report")
    report.add_argument("agent", help="Agent id or name")
    report.add_argument("--save", action="store_true", help="Persist the report and refresh the rating")

    analyze = commands.add_parser("analyze", help="Analyze an agent's performance")
    analyze.add_argument("agent", help="Agent id or name")

    pending = commands.add_parser("pending", help="List pending improvement requests")
    pending.add_argument("agent", nargs="?", help="Only this agent (id or name)")

    approve = commands.add_parser("approve", help="Approve an improvement request")
    approve.add_argument("request_id")
    approve.add_argument("--reviewer", required=True)

    reject = commands.add_parser("reject", help="Reject an improvement request")
    reject.add_argument("request_id")
    reject.add_argument("--reviewer", required=True)
    reject.add_argument("--reason", required=True)

    leaderboard = commands.add_parser("leaderboard", help="Top agents by performance rating")
    leaderboard.add_argument("--limit", type=int, default=10)

    commands.add_parser("reports", help="List saved daily reports awaiting review")

    review = commands.add_parser("review-report", help="Approve or reject a saved daily report")
    review.add_argument("agent", help="Agent id or name")
    review.add_argument("date", help="Report date (YYYY-MM-DD)")
    review.add_argument("decision", choices=[RequestStatus.APPROVED.value, RequestStatus.REJECTED.value])
    review.add_argument("--reviewer", required=True)

    return parser.parse_args(argv)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _profile_dict(p: AgentProfile) -> dict:
    return {"id": p.id, "name": p.name, "category": p.category, "status": p.status.value,
            "performance_rating": p.performance_rating, "success_rate": round(p.success_rate, 1),
            "tasks_completed": p.tasks_completed}


def _request_dict(r: ImprovementRequest) -> dict:
    return {"id": r.id, "agent_id": r.agent_id, "request_type": r.request_type.value, "title": r.title,
            "cost_estimate": r.cost_estimate, "risk_level": r.risk_level.value, "priority": r.priority.value,
            "status": r.status.value, "reviewed_by": r.reviewed_by, "reviewed_at": r.reviewed_at,
            "rejection_reason": r.rejection_reason}


def _report_record_dict(r: DailyReportRecord) -> dict:
    return {"agent_id": r.agent_id, "agent_name": r.agent_name, "category": r.agent_category,
            "date": r.report_date.isoformat(), "tasks_completed": r.tasks_completed,
            "success_rate": round(r.success_rate, 1), "performance_rating": r.performance_rating,
            "learning_outcomes": list(r.learning_outcomes), "recommendations": list(r.recommendations),
            "highlights": list(r.highlights), "concerns": list(r.concerns),
            "status": r.status.value, "reviewed_by": r.reviewed_by, "reviewed_at": r.reviewed_at}


def _print_list(title: str, items: Sequence[str]) -> None:
    if not items:
        return
    print(f"{title}:")
    for item in items:
        print(f"  - {item}")


def _parse_context(raw: Optional[str]) -> dict:
    if not raw:
        return {}
    context = json.loads(raw)
    if not isinstance(context, dict):
        raise ValueError("--context must be a JSON object")
    return context


async def run_command(app: Application, args: argparse.Namespace) -> int:
    """Execute one parsed command against an assembled application."""
    store = app.store

    if args.command == "seed":
        created = store.seed_from_catalog(app.catalog)
        print(f"✓ Seeded {len(created)} new agents ({len(app.catalog)} definitions)")
        return 0

    if args.command == "agents":
        profiles = store.list_profiles(include_archived=args.all, category=args.category)
        if args.json:
            _print_json([_profile_dict(p) for p in profiles])
            return 0
        for p in profiles:
            print(f"{p.id}  {p.name:<32} {p.category:<32} rating {p.performance_rating:>5.1f}  "
                  f"success {p.success_rate:>5.1f}%  tasks {p.tasks_completed}")
        return 0

    if args.command == "execute":
        task = Task(
            agent_id=app.resolve_agent_id(args.agent),
            description=args.description,
            context=_parse_context(args.context),
            priority=TaskPriority(args.priority),
        )
        result = await app.engine.execute_task(task)
        if args.json:
            _print_json(result.to_dict())
            return 0 if result.success else 1
        status = "✓ Success" if result.success else "✗ Failed"
        print(f"{status} ({result.execution_time_ms:.0f}ms)\n")
        print(result.output)
        print(f"\nReasoning: {result.reasoning}")
        _print_list("Tools used", result.tools_used)
        _print_list("Learnings", result.learnings)
        _print_list("Suggested improvements", result.improvements)
        return 0 if result.success else 1

    if args.command == "research":
        outcome = await app.learning.perform_daily_research(app.resolve_agent_id(args.agent))
        if args.json:
            _print_json({
                "research_conducted": [
                    {"topic": r.topic, "findings": list(r.findings), "recommendations": list(r.recommendations),
                     "sources": list(r.sources), "confidence": r.confidence}
                    for r in outcome.research_conducted
                ],
                "learning_opportunities": [
                    {"type": o.type.value, "name": o.name, "relevance": o.relevance,
                     "implementation_cost": o.implementation_cost.value, "risk_level": o.risk_level.value}
                    for o in outcome.learning_opportunities
                ],
                "improvement_proposals": outcome.improvement_proposals,
            })
            return 0
        for research in outcome.research_conducted:
            print(f"\n📚 {research.topic} (confidence {research.confidence})")
            _print_list("Findings", research.findings)
            _print_list("Recommendations", research.recommendations)
        print(f"\n{len(outcome.learning_opportunities)} opportunities, "
              f"{outcome.improvement_proposals} improvement requests proposed")
        return 0

    if args.command == "report":
        agent_id = app.resolve_agent_id(args.agent)
        report = app.reporter.save_daily_report(agent_id) if args.save else app.reporter.generate_daily_report(agent_id)
        if args.json:
            _print_json(report.to_dict())
            return 0
        print(f"📊 {report.agent_name} - {report.report_date.isoformat()}")
        print(f"  Tasks completed: {report.tasks_completed}")
        print(f"  Success rate: {report.success_rate:.1f}%")
        print(f"  Avg response time: {report.avg_response_time:.0f}ms")
        print(f"  Performance rating: {report.performance_rating:.1f}/100")
        print(f"  Learnings today: {len(report.learnings)}")
        print(f"  Pending improvements: {report.pending_improvements}")
        _print_list("Highlights", report.highlights)
        _print_list("Concerns", report.concerns)
        if args.save:
            print("✓ Report saved")
        return 0

    if args.command == "analyze":
        analysis = app.learning.analyze_performance(app.resolve_agent_id(args.agent))
        if args.json:
            _print_json({"strengths": list(analysis.strengths), "weaknesses": list(analysis.weaknesses),
                         "optimizations": list(analysis.optimizations)})
            return 0
        _print_list("Strengths", analysis.strengths)
        _print_list("Weaknesses", analysis.weaknesses)
        _print_list("Optimizations", analysis.optimizations)
        return 0

    if args.command == "pending":
        if args.agent:
            requests = store.list_pending_improvement_requests(app.resolve_agent_id(args.agent))
        else:
            requests = store.list_all_pending_requests()
        if args.json:
            _print_json([_request_dict(r) for r in requests])
            return 0
        if not requests:
            print("No pending improvement requests")
        for r in requests:
            print(f"{r.id}  [{r.priority.value}/{r.risk_level.value} risk/cost {r.cost_estimate}] "
                  f"{r.request_type.value}: {r.title}")
        return 0

    if args.command in ("approve", "reject"):
        if args.command == "approve":
            request = store.approve_request(args.request_id, args.reviewer)
        else:
            request = store.reject_request(args.request_id, args.reviewer, args.reason)
        if args.json:
            _print_json(_request_dict(request))
            return 0
        print(f"✓ {request.status.value.capitalize()} {request.id}: {request.title}")
        return 0

    if args.command == "leaderboard":
        profiles = store.get_leaderboard(args.limit)
        if args.json:
            _print_json([_profile_dict(p) for p in profiles])
            return 0
        for rank, p in enumerate(profiles, start=1):
            print(f"{rank:>2}. {p.name:<32} rating {p.performance_rating:>5.1f}  success {p.success_rate:>5.1f}%")
        return 0

    if args.command == "reports":
        reports = store.list_pending_reports()
        if args.json:
            _print_json([_report_record_dict(r) for r in reports])
            return 0
        if not reports:
            print("No daily reports awaiting review")
        for r in reports:
            print(f"{r.report_date.isoformat()}  {r.agent_name:<32} {r.agent_category:<32} "
                  f"success {r.success_rate:>5.1f}%  tasks {r.tasks_completed}")
            _print_list("Learning outcomes", r.learning_outcomes)
            _print_list("Recommendations", r.recommendations)
        return 0

    if args.command == "review-report":
        report = store.review_report(app.resolve_agent_id(args.agent), args.date, args.decision, args.reviewer)
        if args.json:
            _print_json(_report_record_dict(report))
            return 0
        print(f"✓ {report.status.value.capitalize()} report {report.agent_name} {report.report_date.isoformat()}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    args = parse_args(argv)
    settings = get_settings()
    logger = setup_logging(level=settings.observability.log_level.upper(), log_dir=settings.observability.log_dir)

    try:
        app = build_application(settings, db_path=args.db)
        return asyncio.run(run_command(app, args))
    except AgentForgeError as exc:
        log_error(logger, exc, context=f"command {args.command}")
        print(f"❌ {exc.user_message}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
