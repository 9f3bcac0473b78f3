"""Chat data models shared by the relay, the provider and the client.

- ChatMessage: one message (system/user/assistant).
- ChatRequest: what the relay sends to an upstream provider.
- RelayRequest: the parsed body of an inbound ``POST /cycle-chat``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from cycle_coach.domain.exceptions import ValidationError
from cycle_coach.domain.phases import Phase


Role = Literal["system", "user", "assistant"]

# Roles a caller may put in the history; "system" is reserved for the relay.
CLIENT_ROLES = ("user", "assistant")


@dataclass
class ChatMessage:
    """One chat message.

    ``meta`` never goes upstream; it is for logging and persistence only.
    """

    role: Role
    content: str
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatRequest:
    """One outbound streaming completion request."""

    provider: str  # logical provider name, e.g. "gateway"
    model: str  # logical model name, e.g. "coach-chat"
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class RelayRequest:
    """Inbound relay body: ``{messages, currentPhase?, journalContext?, userId?}``."""

    messages: List[ChatMessage]
    current_phase: Optional[Phase] = None
    journal_context: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> "RelayRequest":
        if not isinstance(data, dict):
            raise ValidationError(code="INVALID_BODY", message="Request body must be a JSON object")
        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list) or not raw_messages:
            raise ValidationError(code="INVALID_BODY", message="messages must be a non-empty list")

        messages: List[ChatMessage] = []
        for idx, item in enumerate(raw_messages):
            if not isinstance(item, dict):
                raise ValidationError(code="INVALID_BODY", message=f"messages[{idx}] must be an object")
            role = item.get("role")
            content = item.get("content")
            if role not in CLIENT_ROLES:
                raise ValidationError(code="INVALID_BODY", message=f"messages[{idx}].role must be user or assistant")
            if not isinstance(content, str):
                raise ValidationError(code="INVALID_BODY", message=f"messages[{idx}].content must be a string")
            messages.append(ChatMessage(role=role, content=content))

        journal_context = data.get("journalContext")
        user_id = data.get("userId")
        return cls(
            messages=messages,
            current_phase=Phase.parse(data.get("currentPhase")),
            journal_context=journal_context if isinstance(journal_context, str) else None,
            user_id=str(user_id) if user_id else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"messages": [m.to_payload() for m in self.messages]}
        payload["currentPhase"] = self.current_phase.value if self.current_phase else None
        if self.journal_context:
            payload["journalContext"] = self.journal_context
        if self.user_id:
            payload["userId"] = self.user_id
        return payload
