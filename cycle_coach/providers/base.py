"""Provider interface.

The relay never talks to a vendor SDK directly; it depends on this protocol.
A provider turns a ChatRequest into one streaming HTTP call and hands back the
still-open response so the relay can forward its bytes untouched.
"""

from typing import AsyncIterator, Protocol

from cycle_coach.domain.models import ChatRequest


class UpstreamStream(Protocol):
    """An open upstream response whose status has already been checked."""

    status_code: int

    def iter_bytes(self) -> AsyncIterator[bytes]:
        ...

    async def aclose(self) -> None:
        ...


class ProviderClient(Protocol):
    """LLM provider client.

    - name: provider name, used in logs.
    - open_stream(req): send one streaming request. Raises a BusinessError
      subclass on a non-success status, before any body byte is read.
    """

    name: str

    async def open_stream(self, req: ChatRequest) -> UpstreamStream:
        ...
