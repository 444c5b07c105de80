"""Performance reporting."""

from .reporter import PerformanceReport, PerformanceReporter, derive_concerns, derive_highlights

__all__ = ["PerformanceReport", "PerformanceReporter", "derive_concerns", "derive_highlights"]
