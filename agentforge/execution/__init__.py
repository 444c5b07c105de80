"""Task execution."""

from .engine import TaskExecutionEngine, build_execution_brief
from .types import ExecutionResult, Task, TaskPriority

__all__ = ["TaskExecutionEngine", "build_execution_brief", "ExecutionResult", "Task", "TaskPriority"]
