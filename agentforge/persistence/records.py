"""Persistent record types held by the capability store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from agentforge.agents.schema import CapabilityType


class AgentStatus(str, Enum):
    ACTIVE = "active"
    LEARNING = "learning"
    IDLE = "idle"
    ARCHIVED = "archived"


class CapabilityOrigin(str, Enum):
    """Where a capability came from: the catalog seed or an approved request."""
    DEFINITION = "definition"
    APPROVED_REQUEST = "approved_request"


class LearningProvenance(str, Enum):
    TASK = "task"
    RESEARCH = "research"


class RequestType(str, Enum):
    NEW_SKILL = "new_skill"
    NEW_TOOL = "new_tool"
    NEW_API = "new_api"
    PROCESS_CHANGE = "process_change"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Level(str, Enum):
    """Three-step scale shared by cost, risk and priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Capability created when a request of the given type is approved
CAPABILITY_FOR_REQUEST: dict[RequestType, CapabilityType] = {
    RequestType.NEW_SKILL: CapabilityType.SKILL,
    RequestType.NEW_TOOL: CapabilityType.TOOL,
    RequestType.NEW_API: CapabilityType.API,
    RequestType.PROCESS_CHANGE: CapabilityType.FRAMEWORK,
}


@dataclass(frozen=True, slots=True)
class AgentProfile:
    """Mutable state of an agent, as a snapshot.

    success_rate and avg_response_time are cumulative averages over all
    recorded executions. performance_rating only changes through
    CapabilityStore.update_performance_rating().
    """

    id: str
    name: str
    category: str
    specialization: str
    performance_rating: float = 50.0
    success_rate: float = 0.0
    tasks_completed: int = 0
    avg_response_time: float = 0.0
    status: AgentStatus = AgentStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Capability:
    id: str
    agent_id: str
    type: CapabilityType
    name: str
    description: str = ""
    origin: CapabilityOrigin = CapabilityOrigin.DEFINITION
    request_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class Learning:
    id: str
    agent_id: str
    text: str
    provenance: LearningProvenance
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ImprovementRequest:
    """A proposed capability change awaiting (or past) human review.

    id and created_at are assigned by the store when left empty.
    """

    agent_id: str
    request_type: RequestType
    title: str
    description: str
    benefit_estimate: str
    cost_estimate: int
    risk_level: Level
    priority: Level
    status: RequestStatus = RequestStatus.PENDING
    id: str = ""
    created_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DailyReportRecord:
    """A persisted daily performance report, keyed by (agent_id, report_date).

    Saved reports go through the same review states as improvement requests;
    re-saving a report for the same day puts it back in the queue.
    agent_name and agent_category are filled in when read from the store.
    """

    agent_id: str
    report_date: date
    tasks_completed: int
    success_rate: float
    avg_response_time: float
    performance_rating: float
    learnings_count: int
    improvements_count: int
    highlights: Tuple[str, ...] = field(default_factory=tuple)
    concerns: Tuple[str, ...] = field(default_factory=tuple)
    learning_outcomes: Tuple[str, ...] = field(default_factory=tuple)
    recommendations: Tuple[str, ...] = field(default_factory=tuple)
    status: RequestStatus = RequestStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    agent_name: Optional[str] = None
    agent_category: Optional[str] = None
