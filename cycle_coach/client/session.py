"""Conversation-turn controller for a chat client.

ChatSession owns the visible message list and loading flag of one
conversation. Renderers never read shared variables: they call ``subscribe``
and receive SessionState snapshots and Notice objects on an asyncio.Queue.

Per turn:
  1. the user message is appended and persisted immediately;
  2. once the relay stream opens, an empty assistant message is appended;
  3. each delta replaces that message's content with the text so far;
  4. at the end the full text is persisted once, or the empty placeholder
     is removed if no text arrived.
Failures publish a Notice and drop the placeholder; the user message stays.
Nothing is retried automatically; ``resubmit`` is the explicit retry.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union
from uuid import uuid4

from cycle_coach.client.decoder import FrameDecoder, iter_deltas
from cycle_coach.client.transport import HttpRelayTransport, RelayTransport
from cycle_coach.context.quick_messages import build_quick_prompt
from cycle_coach.domain.conversation import DEFAULT_TITLE, Conversation, ConversationStore, MessageRecord
from cycle_coach.domain.exceptions import BusinessError, QuotaExceededError, RateLimitError
from cycle_coach.domain.models import ChatMessage, RelayRequest
from cycle_coach.domain.phases import Phase
from cycle_coach.domain.profile import Profile
from cycle_coach.infrastructure.logging.logger import log_event


@dataclass(frozen=True)
class DisplayMessage:
    role: str
    content: str


@dataclass(frozen=True)
class SessionState:
    conversation_id: Optional[str]
    messages: Tuple[DisplayMessage, ...]
    is_loading: bool


@dataclass(frozen=True)
class Notice:
    """A transient, user-visible message (toast)."""

    title: str
    description: str
    variant: str = "destructive"


SessionEvent = Union[SessionState, Notice]


class ChatSession:
    def __init__(
        self,
        store: ConversationStore,
        transport: Optional[RelayTransport] = None,
        current_phase: Optional[Phase] = None,
        user_id: Optional[str] = None,
    ):
        self._store = store
        self._transport = transport or HttpRelayTransport()
        self.current_phase = current_phase
        self.user_id = user_id
        self.conversation_id: Optional[str] = None
        self._messages: List[DisplayMessage] = []
        self._loading = False
        self._subscribers: List[asyncio.Queue] = []

    # ---- state publication ----

    @property
    def state(self) -> SessionState:
        return SessionState(
            conversation_id=self.conversation_id,
            messages=tuple(self._messages),
            is_loading=self._loading,
        )

    @property
    def messages(self) -> Tuple[DisplayMessage, ...]:
        return tuple(self._messages)

    def subscribe(self) -> "asyncio.Queue[SessionEvent]":
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        queue.put_nowait(self.state)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, event: SessionEvent) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)

    def _publish_state(self) -> None:
        self._publish(self.state)

    def _notify(self, title: str, description: str, variant: str = "destructive") -> None:
        self._publish(Notice(title=title, description=description, variant=variant))

    # ---- conversation management ----

    def open(self, conversation_id: Optional[str] = None) -> Conversation:
        """Load ``conversation_id``, else the most recently updated one, else a new one."""

        if conversation_id:
            conv = self._store.get_conversation(conversation_id)
        else:
            existing = self._store.list_conversations()
            conv = existing[0] if existing else self._store.create_conversation(DEFAULT_TITLE)
        self.conversation_id = conv.id
        self._messages = [
            DisplayMessage(role=m.role, content=m.content)
            for m in self._store.list_messages(conv.id)
            if m.role in ("user", "assistant")
        ]
        self._publish_state()
        return conv

    def select(self, conversation_id: str) -> Conversation:
        return self.open(conversation_id)

    def new_conversation(self, title: str = DEFAULT_TITLE) -> Conversation:
        conv = self._store.create_conversation(title)
        return self.open(conv.id)

    def clear(self) -> None:
        """Delete every message of the current conversation."""

        if not self.conversation_id:
            return
        try:
            self._store.clear_messages(self.conversation_id)
        except BusinessError as e:
            self._notify("Error clearing chat", e.message)
            return
        self._messages = []
        self._publish_state()
        self._notify("Chat cleared", "Your conversation has been cleared.", variant="default")

    # ---- turns ----

    async def send(self, text: str) -> Optional[MessageRecord]:
        """Run one chat turn; returns the persisted assistant record, if any."""

        text = (text or "").strip()
        if not text or self._loading:
            return None
        if self.conversation_id is None:
            self.open()
        self._messages.append(DisplayMessage(role="user", content=text))
        self._publish_state()
        self._save("user", text)
        return await self._stream_reply()

    async def send_quick(self, kind: str, profile: Optional[Profile] = None) -> Optional[MessageRecord]:
        """Send one of the canned quick-message prompts as a normal turn."""
        return await self.send(build_quick_prompt(kind, self.current_phase, profile))

    async def resubmit(self, last_user_message: str) -> Optional[MessageRecord]:
        """Explicit manual retry.

        If ``last_user_message`` is already the last entry of the history (the
        previous attempt failed), only the assistant reply is requested again;
        otherwise it is sent as a new turn.
        """

        text = (last_user_message or "").strip()
        if not text or self._loading:
            return None
        last = self._messages[-1] if self._messages else None
        if last is not None and last.role == "user" and last.content == text:
            return await self._stream_reply()
        return await self.send(text)

    async def _stream_reply(self) -> Optional[MessageRecord]:
        log_ctx = {"conversation_id": self.conversation_id, "turn_id": f"t-{uuid4().hex}"}
        request = RelayRequest(
            messages=[ChatMessage(role=m.role, content=m.content) for m in self._messages],
            current_phase=self.current_phase,
            user_id=self.user_id,
        )
        self._loading = True
        self._publish_state()

        placeholder = False
        assistant_text = ""
        try:
            async with self._transport.open(request.to_payload()) as byte_stream:
                self._messages.append(DisplayMessage(role="assistant", content=""))
                placeholder = True
                self._publish_state()
                async for delta in iter_deltas(byte_stream, FrameDecoder()):
                    assistant_text += delta
                    self._messages[-1] = DisplayMessage(role="assistant", content=assistant_text)
                    self._publish_state()
        except RateLimitError:
            self._notify("Rate limit exceeded", "Please try again later.")
            return self._abort_turn(placeholder)
        except QuotaExceededError:
            self._notify("Payment required", "Please add funds to continue using the AI assistant.")
            return self._abort_turn(placeholder)
        except Exception as e:
            log_event(logging.ERROR, "Error streaming chat", log_ctx, error=str(e), error_type=type(e).__name__)
            self._notify("Error", "Failed to get response from AI assistant.")
            return self._abort_turn(placeholder)
        finally:
            self._loading = False

        if not assistant_text:
            log_event(logging.WARNING, "Stream ended without assistant text", log_ctx)
            return self._abort_turn(placeholder)

        self._publish_state()
        log_event(logging.INFO, "Assistant reply complete", log_ctx, length=len(assistant_text))
        return self._save("assistant", assistant_text)

    def _abort_turn(self, placeholder: bool) -> None:
        self._loading = False
        if placeholder and self._messages and self._messages[-1].role == "assistant":
            self._messages.pop()
        self._publish_state()
        return None

    def _save(self, role: str, content: str) -> Optional[MessageRecord]:
        if not self.conversation_id:
            return None
        record = MessageRecord(
            id=f"m-{uuid4().hex}",
            conversation_id=self.conversation_id,
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
            current_phase=self.current_phase.value if self.current_phase else None,
        )
        try:
            self._store.add_message(record)
        except BusinessError as e:
            log_event(
                logging.ERROR,
                "Error saving message",
                {"conversation_id": self.conversation_id},
                code=e.code,
                error=e.message,
            )
            return None
        return record
