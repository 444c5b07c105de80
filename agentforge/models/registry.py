"""Reasoning provider registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from langchain_core.language_models import BaseChatModel


class ModelResolver(Protocol):
    """Callable that returns a LangChain chat model for a provider slot."""

    def __call__(
        self,
        provider: str,
        *,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> BaseChatModel:
        ...


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """Normalized description of an OpenAI-compatible chat endpoint."""

    key: str  # openai | claude
    model_id: str
    base_url: Optional[str]
    configured: bool  # an API key is present


class ProviderRegistry:
    """Central registry for reasoning provider slots."""

    def __init__(self, specs: Optional[Iterable[ProviderSpec]] = None) -> None:
        self._specs: Dict[str, ProviderSpec] = {}
        if specs:
            for spec in specs:
                self.register(spec)

    def register(self, spec: ProviderSpec) -> None:
        """Store a spec under its key."""

        self._specs[spec.key] = spec

    def get(self, key: str) -> ProviderSpec:
        """Return the spec for a given key."""

        if key not in self._specs:
            raise KeyError(f"Unknown reasoning provider: {key}")
        return self._specs[key]

    def is_configured(self, key: str) -> bool:
        spec = self._specs.get(key)
        return bool(spec and spec.configured)

    def keys(self) -> List[str]:
        return list(self._specs)


def build_default_registry(provider_configs: Mapping[str, Mapping[str, object]]) -> ProviderRegistry:
    """Instantiate the registry from resolved provider configs.

    Args:
        provider_configs: Provider slot -> config dict with 'id', 'api_key'
                          and 'base_url' keys
    """

    return ProviderRegistry(
        ProviderSpec(
            key=key,
            model_id=str(config["id"]),
            base_url=config.get("base_url"),  # type: ignore[arg-type]
            configured=bool(config.get("api_key")),
        )
        for key, config in provider_configs.items()
    )
