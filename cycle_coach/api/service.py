"""Relay and conversation services used by the HTTP layer.

ChatRelay does the per-turn work: assemble the system prompt, open one
upstream stream, forward its bytes. The module-level helpers expose the
conversation store as plain dicts for the HTTP handlers.
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import uuid4

from cycle_coach.config.settings import settings
from cycle_coach.context.assembler import assemble_context, build_system_prompt
from cycle_coach.domain.conversation import DEFAULT_TITLE, Conversation, ConversationStore, MessageRecord
from cycle_coach.domain.exceptions import BusinessError, ValidationError
from cycle_coach.domain.models import ChatMessage, ChatRequest, RelayRequest
from cycle_coach.domain.profile import ContextProvider
from cycle_coach.infrastructure.logging.logger import log_event
from cycle_coach.infrastructure.storage.json_store import JsonConversationStore
from cycle_coach.infrastructure.storage.profile_store import JsonProfileStore
from cycle_coach.providers import create_provider
from cycle_coach.providers.base import ProviderClient, UpstreamStream


class ChatRelay:
    """Streams one chat turn from the upstream provider to the caller."""

    def __init__(
        self,
        provider_client: ProviderClient,
        context_provider: Optional[ContextProvider] = None,
        model: Optional[str] = None,
    ):
        self._provider_client = provider_client
        self._context_provider = context_provider
        self._model = model or settings.default_model

    def build_request(self, request: RelayRequest) -> ChatRequest:
        """Prepend the personalized system instruction to the caller's history."""

        ctx = assemble_context(self._context_provider, request.user_id, request.current_phase)
        system_prompt = build_system_prompt(
            phase=ctx.phase,
            profile=ctx.profile,
            journal=ctx.journal,
            extra_journal_text=request.journal_context,
        )
        messages = [ChatMessage(role="system", content=system_prompt)]
        messages.extend(request.messages)
        return ChatRequest(provider=self._provider_client.name, model=self._model, messages=messages)

    async def open(self, request: RelayRequest, log_ctx: Optional[Dict[str, Any]] = None) -> UpstreamStream:
        """Open the upstream stream. Errors surface here, before any byte is sent."""

        log_ctx = log_ctx if log_ctx is not None else {"trace_id": f"tr-{uuid4().hex}"}
        chat_request = self.build_request(request)
        log_event(
            logging.INFO,
            "Calling provider (stream)",
            log_ctx,
            provider=self._provider_client.name,
            model=self._model,
            message_count=len(chat_request.messages),
            current_phase=request.current_phase.value if request.current_phase else None,
        )
        try:
            return await self._provider_client.open_stream(chat_request)
        except BusinessError as e:
            log_event(
                logging.WARNING,
                "Provider refused stream",
                log_ctx,
                code=e.code,
                http_status=e.http_status,
                **{k: v for k, v in e.extra.items() if k != "upstream_body"},
            )
            raise

    async def forward(self, stream: UpstreamStream, log_ctx: Optional[Dict[str, Any]] = None) -> AsyncIterator[bytes]:
        """Yield upstream bytes unchanged, as they arrive."""

        log_ctx = log_ctx or {}
        start = time.time()
        total = 0
        try:
            async for chunk in stream.iter_bytes():
                total += len(chunk)
                yield chunk
        except BusinessError as e:
            log_event(logging.ERROR, "Upstream stream broke", log_ctx, code=e.code, bytes_relayed=total)
            raise
        finally:
            await stream.aclose()
            log_event(
                logging.INFO,
                "Relay finished",
                log_ctx,
                bytes_relayed=total,
                elapsed_seconds=round(time.time() - start, 2),
            )


_store: Optional[ConversationStore] = None
_profiles: Optional[JsonProfileStore] = None
_relay: Optional[ChatRelay] = None


def get_default_store() -> ConversationStore:
    global _store
    if _store is None:
        _store = JsonConversationStore(root=settings.storage_root)
    return _store


def get_default_profiles() -> JsonProfileStore:
    global _profiles
    if _profiles is None:
        _profiles = JsonProfileStore(root=settings.storage_root)
    return _profiles


def get_default_relay() -> ChatRelay:
    """Shared ChatRelay backed by the configured provider and the profile store."""
    global _relay
    if _relay is None:
        _relay = ChatRelay(provider_client=create_provider(), context_provider=get_default_profiles())
    return _relay


def _conversation_dict(c: Conversation) -> Dict[str, Any]:
    return {
        "id": c.id,
        "title": c.title,
        "created_at": c.created_at.isoformat(),
        "updated_at": c.updated_at.isoformat(),
    }


def _message_dict(m: MessageRecord) -> Dict[str, Any]:
    return {
        "id": m.id,
        "conversation_id": m.conversation_id,
        "role": m.role,
        "content": m.content,
        "current_phase": m.current_phase,
        "created_at": m.created_at.isoformat(),
    }


def list_conversations() -> List[Dict[str, Any]]:
    """All conversations, most recently updated first."""
    return [_conversation_dict(c) for c in get_default_store().list_conversations()]


def create_conversation(title: Optional[str] = None) -> Dict[str, Any]:
    return _conversation_dict(get_default_store().create_conversation((title or "").strip() or DEFAULT_TITLE))


def rename_conversation(conversation_id: str, title: Optional[str]) -> Dict[str, Any]:
    """Rename a conversation. Blank titles are rejected."""
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError(code="INVALID_TITLE", message="title must not be blank")
    return _conversation_dict(get_default_store().update_conversation_title(conversation_id, cleaned[:100]))


def get_conversation_messages(conversation_id: str) -> List[Dict[str, Any]]:
    store = get_default_store()
    store.get_conversation(conversation_id)
    return [_message_dict(m) for m in store.list_messages(conversation_id)]


def clear_conversation(conversation_id: str) -> None:
    get_default_store().clear_messages(conversation_id)
