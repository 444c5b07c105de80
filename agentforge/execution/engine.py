"""Task execution engine.

Composes an execution brief for an agent, delegates the reasoning to the
gateway, interprets the reply and folds the outcome into the agent's
counters and learnings.
"""

from __future__ import annotations

import json
import logging
import random
import time
from typing import Callable, List, Optional, Sequence

from agentforge.agents.registry import DefinitionCatalog
from agentforge.agents.schema import AgentDefinition
from agentforge.gateway.parsing import TaskReply, interpret_task_reply
from agentforge.gateway.reasoning import CompletionOptions, ReasoningGateway
from agentforge.persistence.capability_store import CapabilityStore
from agentforge.persistence.records import AgentProfile, Capability, LearningProvenance
from agentforge.utils.error_handler import AgentDefinitionNotFoundError
from agentforge.utils.logging_utils import log_prompt, log_task_execution

from .types import ExecutionResult, Task, TaskPriority

LOGGER = logging.getLogger(__name__)

EXECUTION_SYSTEM_PROMPT = (
    "You are a specialized AI agent executing a task. Always respond in valid JSON format."
)

# Rule-based improvement thresholds (applied to the post-update profile)
SUCCESS_RATE_TARGET = 80
SLOW_RESPONSE_MS = 5000

REVIEW_FAILURES_SUGGESTION = "Review failed tasks to identify common patterns and improve success rate"
OPTIMIZE_SPEED_SUGGESTION = "Optimize execution speed to reduce response time"

_OUTPUT_SHAPE = """Respond in JSON format:
{
  "success": boolean,
  "output": "your detailed solution/result",
  "reasoning": "your step-by-step reasoning",
  "toolsUsed": ["tool1", "tool2"],
  "learnings": ["learning1", "learning2"],
  "suggestedImprovements": ["improvement1", "improvement2"]
}"""


def _num(value: float) -> str:
    return f"{round(value, 1):g}"


def _capability_lines(capabilities: Sequence[Capability]) -> str:
    if not capabilities:
        return "- (none recorded)"
    lines = []
    for capability in capabilities:
        line = f"- {capability.name} ({capability.type.value})"
        if capability.description:
            line += f": {capability.description}"
        lines.append(line)
    return "\n".join(lines)


def build_execution_brief(
    profile: AgentProfile,
    definition: AgentDefinition,
    capabilities: Sequence[Capability],
    task: Task,
) -> str:
    """Compose the user message sent to the reasoning collaborator for a task."""
    priority = TaskPriority(task.priority).value
    context = json.dumps(task.context, indent=2, ensure_ascii=False, default=str)

    sections = [
        f"You are {profile.name}, a world-class AI agent specializing in {profile.specialization}.",
        f"Your Role:\n{definition.description}",
        f"Your Current Skills:\n{', '.join(definition.initial_skills)}",
        f"Your Available Tools:\n{', '.join(definition.initial_tools)}",
        f"Your Available APIs:\n{', '.join(definition.initial_apis)}",
        f"Your Capabilities:\n{_capability_lines(capabilities)}",
        "Your Performance Stats:\n"
        f"- Performance Rating: {_num(profile.performance_rating)}/100\n"
        f"- Success Rate: {_num(profile.success_rate)}%\n"
        f"- Tasks Completed: {profile.tasks_completed}\n"
        f"- Average Response Time: {int(round(profile.avg_response_time))}ms",
        f"Task:\n{task.description}",
        f"Context:\n{context}",
    ]

    task_meta = f"Priority: {priority}"
    if task.deadline is not None:
        task_meta += f"\nDeadline: {task.deadline.isoformat()}"
    sections.append(task_meta)

    sections.append(
        "Instructions:\n"
        "1. Analyze the task thoroughly\n"
        "2. Use your specialized knowledge and skills\n"
        "3. Leverage available tools and APIs as needed\n"
        "4. Provide a detailed, actionable solution\n"
        "5. Explain your reasoning\n"
        "6. Identify what you learned from this task\n"
        "7. Suggest improvements to your capabilities"
    )
    sections.append(_OUTPUT_SHAPE)
    return "\n\n".join(sections)


class TaskExecutionEngine:
    """Runs tasks for agents through the reasoning gateway.

    Suggestions surfaced during execution are informational only; this engine
    never creates improvement requests.
    """

    def __init__(
        self,
        store: CapabilityStore,
        catalog: DefinitionCatalog,
        gateway: ReasoningGateway,
        completion_options: Optional[CompletionOptions] = None,
        rng: Optional[random.Random] = None,
        timer: Callable[[], float] = time.monotonic,
        prompt_log_length: int = 500,
    ):
        self.store = store
        self.catalog = catalog
        self.gateway = gateway
        self.completion_options = completion_options or CompletionOptions()
        self._rng = rng or random.Random()
        self._timer = timer
        self._prompt_log_length = prompt_log_length

    def _definition_for(self, profile: AgentProfile) -> AgentDefinition:
        definition = self.catalog.get(profile.name)
        if definition is None:
            raise AgentDefinitionNotFoundError(profile.name)
        return definition

    async def execute_task(self, task: Task) -> ExecutionResult:
        """Execute one task and record its outcome.

        Raises:
            AgentNotFoundError: The task's agent does not exist
            AgentDefinitionNotFoundError: The agent's definition is not in the catalog
        """
        start = self._timer()

        profile = self.store.get_profile(task.agent_id)
        definition = self._definition_for(profile)
        capabilities = self.store.list_capabilities(task.agent_id)

        brief = build_execution_brief(profile, definition, capabilities, task)
        log_prompt(LOGGER, "execute", brief, max_length=self._prompt_log_length)
        messages = [
            {"role": "system", "content": EXECUTION_SYSTEM_PROMPT},
            {"role": "user", "content": brief},
        ]

        call_start = self._timer()
        reply = await self.gateway.complete_reply(messages, self.completion_options)
        gateway_ms = max(0.0, (self._timer() - call_start) * 1000)

        if reply.degraded:
            parsed = TaskReply(
                success=False,
                output=f"Error: {reply.error}",
                reasoning="Task execution failed",
                structured=False,
            )
        else:
            parsed = interpret_task_reply(reply.text)

        learnings = self._derive_learnings(parsed, task)
        updated = self.store.record_execution(task.agent_id, parsed.success, gateway_ms)
        improvements = self._derive_improvements(parsed, updated, definition)

        for learning in learnings:
            self.store.append_learning(task.agent_id, learning, LearningProvenance.TASK)

        execution_time_ms = max(0.0, (self._timer() - start) * 1000)
        log_task_execution(
            LOGGER, task.id, profile.name, parsed.success, execution_time_ms, learnings, improvements
        )

        return ExecutionResult(
            task_id=task.id,
            agent_id=task.agent_id,
            success=parsed.success,
            output=parsed.output,
            reasoning=parsed.reasoning,
            tools_used=parsed.tools_used,
            execution_time_ms=execution_time_ms,
            learnings=tuple(learnings),
            improvements=tuple(improvements),
        )

    @staticmethod
    def _derive_learnings(parsed: TaskReply, task: Task) -> List[str]:
        learnings = list(parsed.learnings)
        if parsed.success:
            learnings.append(f"Successfully completed {TaskPriority(task.priority).value} priority task")
        else:
            learnings.append(f"Encountered challenges with {task.description}")
        return learnings

    def _derive_improvements(
        self,
        parsed: TaskReply,
        profile: AgentProfile,
        definition: AgentDefinition,
    ) -> List[str]:
        improvements = list(parsed.suggested_improvements)
        if profile.success_rate < SUCCESS_RATE_TARGET:
            improvements.append(REVIEW_FAILURES_SUGGESTION)
        if profile.avg_response_time > SLOW_RESPONSE_MS:
            improvements.append(OPTIMIZE_SPEED_SUGGESTION)
        if definition.learning_focus:
            focus = self._rng.choice(definition.learning_focus)
            improvements.append(f"Research and integrate new tools for: {focus}")
        return improvements
