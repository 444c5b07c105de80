"""Definition catalog - read-only registry of agent definitions.

Supports lookup by name, listing by category and category summaries.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .schema import AgentDefinition

LOGGER = logging.getLogger(__name__)


class DefinitionCatalog:
    """Registry of the static agent definitions.

    Registration happens only while the catalog is being loaded; afterwards
    the catalog is shared read-only between the engine, the research cycle
    and the CLI.
    """

    def __init__(self, definitions: Optional[Iterable[AgentDefinition]] = None):
        self._definitions: Dict[str, AgentDefinition] = {}
        if definitions:
            for definition in definitions:
                self.register(definition)

    # ========== Registration ==========

    def register(self, definition: AgentDefinition) -> None:
        """Register a definition under its name.

        Raises:
            ValueError: A definition with the same name is already registered
        """
        if definition.name in self._definitions:
            raise ValueError(f"Duplicate agent definition: {definition.name}")
        self._definitions[definition.name] = definition
        LOGGER.debug(f"Registered definition: {definition.name} ({definition.category})")

    # ========== Queries ==========

    def get(self, name: str) -> Optional[AgentDefinition]:
        """Return the definition with the given name, or None."""
        return self._definitions.get(name)

    def require(self, name: str) -> AgentDefinition:
        """Return the definition with the given name.

        Raises:
            KeyError: No definition with that name
        """
        if name not in self._definitions:
            raise KeyError(f"Agent definition not found: {name}")
        return self._definitions[name]

    def list_all(self) -> List[AgentDefinition]:
        """All definitions in catalog order."""
        return list(self._definitions.values())

    def list_by_category(self, category: str) -> List[AgentDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    def categories(self) -> Dict[str, int]:
        """Category name -> number of definitions, in first-seen order."""
        counts: Dict[str, int] = {}
        for definition in self._definitions.values():
            counts[definition.category] = counts.get(definition.category, 0) + 1
        return counts

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"DefinitionCatalog(definitions={len(self)}, categories={len(self.categories())})"
