"""Provider and model configuration.

Code refers to models by logical name ("coach-chat"); the registry maps that
to the model id the upstream provider expects, so the model can be swapped
here without touching callers."""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional


@dataclass
class ModelConfig:
    """Configuration for one logical model."""

    logical_name: str
    provider_model: str
    max_tokens: Optional[int] = None
    default_temperature: Optional[float] = None


@dataclass
class ProviderConfig:
    """Configuration for one provider."""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


# OpenAI-compatible AI gateway
GATEWAY_CONFIG = ProviderConfig(
    name="gateway",
    base_url="https://ai.gateway.lovable.dev/v1",
    models={
        "coach-chat": ModelConfig(
            logical_name="coach-chat",
            provider_model="google/gemini-2.5-flash",
        )
    },
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "gateway": GATEWAY_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """Look up a ProviderConfig by name, case-insensitively."""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
