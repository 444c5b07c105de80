"""Daily performance reports for human review."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from agentforge.persistence.capability_store import CapabilityStore
from agentforge.persistence.records import AgentProfile, DailyReportRecord
from agentforge.utils.time_utils import local_midnight, utc_now

LOGGER = logging.getLogger(__name__)

# Fixed policy thresholds so reports stay comparable across agents
EXCELLENT_SUCCESS_RATE = 90
HIGH_PERFORMANCE_RATING = 85
ACTIVE_LEARNING_COUNT = 5
LOW_SUCCESS_RATE = 70
HIGH_RESPONSE_TIME_MS = 10000
PENDING_BACKLOG_LIMIT = 10


def _num(value: float) -> str:
    return f"{round(value, 1):g}"


@dataclass(frozen=True, slots=True)
class PerformanceReport:
    """Derived daily report. Recomputed on demand, never mutated."""

    agent_id: str
    agent_name: str
    report_date: date
    tasks_completed: int
    success_rate: float
    avg_response_time: float
    performance_rating: float
    learnings: Tuple[str, ...] = field(default_factory=tuple)
    improvements: Tuple[str, ...] = field(default_factory=tuple)
    pending_improvements: int = 0
    highlights: Tuple[str, ...] = field(default_factory=tuple)
    concerns: Tuple[str, ...] = field(default_factory=tuple)

    def to_record(self) -> DailyReportRecord:
        return DailyReportRecord(
            agent_id=self.agent_id,
            report_date=self.report_date,
            tasks_completed=self.tasks_completed,
            success_rate=self.success_rate,
            avg_response_time=self.avg_response_time,
            performance_rating=self.performance_rating,
            learnings_count=len(self.learnings),
            improvements_count=self.pending_improvements,
            highlights=self.highlights,
            concerns=self.concerns,
            learning_outcomes=self.learnings,
            recommendations=self.improvements,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "date": self.report_date.isoformat(),
            "tasks_completed": self.tasks_completed,
            "success_rate": round(self.success_rate, 1),
            "avg_response_time": int(round(self.avg_response_time)),
            "performance_rating": round(self.performance_rating, 1),
            "learnings": list(self.learnings),
            "improvements": list(self.improvements),
            "pending_improvements": self.pending_improvements,
            "highlights": list(self.highlights),
            "concerns": list(self.concerns),
        }


def derive_highlights(profile: AgentProfile, learnings_today: int) -> List[str]:
    highlights = []
    if profile.success_rate >= EXCELLENT_SUCCESS_RATE:
        highlights.append(f"Excellent success rate: {_num(profile.success_rate)}%")
    if profile.performance_rating >= HIGH_PERFORMANCE_RATING:
        highlights.append(f"High performance rating: {_num(profile.performance_rating)}/100")
    if learnings_today > ACTIVE_LEARNING_COUNT:
        highlights.append(f"Active learning: {learnings_today} new learnings today")
    return highlights


def derive_concerns(profile: AgentProfile, pending_count: int) -> List[str]:
    concerns = []
    if profile.success_rate < LOW_SUCCESS_RATE:
        concerns.append(f"Success rate below target: {_num(profile.success_rate)}%")
    if profile.avg_response_time > HIGH_RESPONSE_TIME_MS:
        concerns.append(f"Response time high: {int(round(profile.avg_response_time))}ms")
    if pending_count > PENDING_BACKLOG_LIMIT:
        concerns.append(f"{pending_count} pending improvement requests need review")
    return concerns


class PerformanceReporter:
    """Builds daily reports from the store; optionally persists them."""

    def __init__(self, store: CapabilityStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or utc_now

    def generate_daily_report(self, agent_id: str) -> PerformanceReport:
        """Report on an agent's counters, today's learnings and pending requests.

        Read-only: two calls without intervening writes return equal reports.

        Raises:
            AgentNotFoundError: No agent with that id
        """
        profile = self.store.get_profile(agent_id)
        today_start = local_midnight(self._clock())

        learnings = self.store.list_recent_learnings(agent_id, today_start)
        pending = self.store.list_pending_improvement_requests(agent_id)

        return PerformanceReport(
            agent_id=profile.id,
            agent_name=profile.name,
            report_date=today_start.date(),
            tasks_completed=profile.tasks_completed,
            success_rate=profile.success_rate,
            avg_response_time=profile.avg_response_time,
            performance_rating=profile.performance_rating,
            learnings=tuple(learning.text for learning in learnings),
            improvements=tuple(request.description for request in pending),
            pending_improvements=len(pending),
            highlights=tuple(derive_highlights(profile, len(learnings))),
            concerns=tuple(derive_concerns(profile, len(pending))),
        )

    def save_daily_report(self, agent_id: str) -> PerformanceReport:
        """Generate today's report, persist it and refresh the agent's rating.

        The returned report reflects the rating before the refresh.
        """
        report = self.generate_daily_report(agent_id)
        self.store.save_daily_report(report.to_record())
        rating = self.store.update_performance_rating(agent_id)
        LOGGER.info(f"Saved daily report for {report.agent_name} ({report.report_date}); rating now {rating}")
        return report
