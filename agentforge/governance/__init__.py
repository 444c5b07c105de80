"""Improvement triage."""

from .triage import ImprovementTriage, build_request, is_eligible, priority_for

__all__ = ["ImprovementTriage", "build_request", "is_eligible", "priority_for"]
