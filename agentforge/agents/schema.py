"""Agent definition schema.

An agent definition is the static "business card" of a specialized agent:
who it is, what it is good at, what it starts out with, and what it should
keep learning about. Definitions are loaded once from catalog.yaml and are
never mutated; the mutable side of an agent lives in its AgentProfile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class CapabilityType(str, Enum):
    """Kind of entry in an agent's capability inventory."""
    SKILL = "skill"
    TOOL = "tool"
    API = "api"
    FRAMEWORK = "framework"


@dataclass(frozen=True, slots=True)
class AgentDefinition:
    """Static description of one specialized agent.

    Attributes:
        name: Unique display name, also the link key from profiles
        category: One of the catalog categories (e.g. "Content Creation")
        specialization: One-line statement of the agent's niche
        description: Longer free-text description
        initial_skills: Skills seeded into a new profile
        initial_tools: Tools seeded into a new profile
        initial_apis: APIs seeded into a new profile
        initial_frameworks: Frameworks seeded into a new profile
        learning_focus: Research topics the agent keeps learning about
        performance_metrics: Metric names that describe success for this agent

    Examples:
        >>> definition = AgentDefinition(
        ...     name="Email Composer",
        ...     category="Communication & Correspondence",
        ...     specialization="Professional email composition",
        ...     description="Drafts professional emails",
        ...     initial_skills=("Email writing",),
        ... )
        >>> definition.seed_capabilities()[CapabilityType.SKILL]
        ('Email writing',)
    """

    name: str
    category: str
    specialization: str
    description: str
    initial_skills: Tuple[str, ...] = field(default_factory=tuple)
    initial_tools: Tuple[str, ...] = field(default_factory=tuple)
    initial_apis: Tuple[str, ...] = field(default_factory=tuple)
    initial_frameworks: Tuple[str, ...] = field(default_factory=tuple)
    learning_focus: Tuple[str, ...] = field(default_factory=tuple)
    performance_metrics: Tuple[str, ...] = field(default_factory=tuple)

    def seed_capabilities(self) -> Dict[CapabilityType, Tuple[str, ...]]:
        """Initial capability names grouped by capability type."""
        return {
            CapabilityType.SKILL: self.initial_skills,
            CapabilityType.TOOL: self.initial_tools,
            CapabilityType.API: self.initial_apis,
            CapabilityType.FRAMEWORK: self.initial_frameworks,
        }

    def __str__(self) -> str:
        return f"AgentDefinition({self.name}, {self.category})"
