"""Upstream LLM provider integration.

- base: provider protocol.
- registry: logical model to provider model mapping.
- gateway_client: the OpenAI-compatible gateway implementation.
"""

from typing import Optional

from cycle_coach.config.settings import settings
from cycle_coach.providers.base import ProviderClient
from cycle_coach.providers.gateway_client import GatewayClient


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """Create a provider by name; only "gateway" exists today."""

    provider_name = (name or "gateway").lower()
    if provider_name != "gateway":
        raise KeyError(f"Unknown provider: {name!r}")
    return GatewayClient(settings)
