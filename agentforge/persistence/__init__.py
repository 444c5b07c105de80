"""Persistence helpers for AgentForge."""

from .capability_store import CapabilityStore
from .records import (
    CAPABILITY_FOR_REQUEST,
    AgentProfile,
    AgentStatus,
    Capability,
    CapabilityOrigin,
    DailyReportRecord,
    ImprovementRequest,
    Learning,
    LearningProvenance,
    Level,
    RequestStatus,
    RequestType,
)

__all__ = [
    "CapabilityStore",
    "CAPABILITY_FOR_REQUEST",
    "AgentProfile",
    "AgentStatus",
    "Capability",
    "CapabilityOrigin",
    "DailyReportRecord",
    "ImprovementRequest",
    "Learning",
    "LearningProvenance",
    "Level",
    "RequestStatus",
    "RequestType",
]
