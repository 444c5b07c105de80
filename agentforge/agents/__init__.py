"""Agent definitions - schema, catalog registry and YAML scanner."""

from .registry import DefinitionCatalog
from .scanner import DEFAULT_CATALOG_PATH, load_definition_catalog, parse_definition_from_config
from .schema import AgentDefinition, CapabilityType

__all__ = [
    "AgentDefinition",
    "CapabilityType",
    "DefinitionCatalog",
    "DEFAULT_CATALOG_PATH",
    "load_definition_catalog",
    "parse_definition_from_config",
]
