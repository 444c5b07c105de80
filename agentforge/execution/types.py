"""Task and result types for the execution engine."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass(frozen=True, slots=True)
class Task:
    """A unit of work addressed to one agent. Consumed once, never mutated."""

    agent_id: str
    description: str
    context: Dict[str, Any] = field(default_factory=dict)
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: Optional[datetime] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of one task execution."""

    task_id: str
    agent_id: str
    success: bool
    output: str
    reasoning: str
    tools_used: Tuple[str, ...]
    execution_time_ms: float
    learnings: Tuple[str, ...]
    improvements: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "agent_id": self.agent_id,
            "success": self.success,
            "output": self.output,
            "reasoning": self.reasoning,
            "tools_used": list(self.tools_used),
            "execution_time_ms": round(self.execution_time_ms, 1),
            "learnings": list(self.learnings),
            "improvements": list(self.improvements),
        }
