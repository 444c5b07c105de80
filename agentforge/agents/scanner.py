"""Catalog scanner - loads agent definitions from catalog.yaml.

Responsible for:
1. Reading the YAML catalog
2. Validating each entry
3. Building AgentDefinition instances and registering them in a DefinitionCatalog
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .registry import DefinitionCatalog
from .schema import AgentDefinition

LOGGER = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "catalog.yaml"

_REQUIRED_FIELDS = ("name", "category", "specialization", "description")
_LIST_FIELDS = (
    "initial_skills",
    "initial_tools",
    "initial_apis",
    "initial_frameworks",
    "learning_focus",
    "performance_metrics",
)


def _string_tuple(value: Any, field_name: str, agent_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Field '{field_name}' of agent '{agent_name}' must be a list")
    return tuple(str(item) for item in value)


def parse_definition_from_config(config: Dict[str, Any]) -> AgentDefinition:
    """Parse one catalog entry into an AgentDefinition.

    Args:
        config: Catalog entry dictionary

    Returns:
        AgentDefinition instance

    Raises:
        KeyError: A required field is missing
        ValueError: A field has the wrong shape
    """
    for field_name in _REQUIRED_FIELDS:
        if field_name not in config:
            raise KeyError(f"Catalog entry is missing required field '{field_name}': {config!r}")

    name = str(config["name"]).strip()
    if not name:
        raise ValueError("Catalog entry has an empty name")

    lists = {
        field_name: _string_tuple(config.get(field_name), field_name, name)
        for field_name in _LIST_FIELDS
    }

    return AgentDefinition(
        name=name,
        category=str(config["category"]),
        specialization=str(config["specialization"]),
        description=str(config["description"]),
        **lists,
    )


def load_catalog_config(config_path: Path | str) -> List[Dict[str, Any]]:
    """Load the raw agent entries from a catalog file.

    Args:
        config_path: Catalog file path

    Returns:
        List of agent entry dictionaries (empty if the file does not exist)
    """
    config_path = Path(config_path)

    if not config_path.exists():
        LOGGER.warning(f"Agent catalog not found: {config_path}")
        return []

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    agents = config.get("agents", [])
    if not isinstance(agents, list):
        raise ValueError(f"'agents' in {config_path} must be a list")
    return agents


def load_definition_catalog(config_path: Optional[Path | str] = None) -> DefinitionCatalog:
    """Load catalog.yaml into a DefinitionCatalog.

    Args:
        config_path: Catalog path (default: the packaged catalog.yaml)

    Returns:
        Populated DefinitionCatalog

    Raises:
        KeyError: An entry is missing a required field
        ValueError: An entry is malformed or a name is duplicated
    """
    path = Path(config_path) if config_path else DEFAULT_CATALOG_PATH
    entries = load_catalog_config(path)

    catalog = DefinitionCatalog()
    for entry in entries:
        catalog.register(parse_definition_from_config(entry))

    LOGGER.info(f"Loaded {len(catalog)} agent definitions from {path}")
    for category, count in catalog.categories().items():
        LOGGER.debug(f"  - {category}: {count}")

    return catalog
