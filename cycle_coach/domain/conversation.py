from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Protocol
from datetime import datetime
from .models import Role


DEFAULT_TITLE = "New Conversation"


@dataclass
class Conversation:
    id: str
    title: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MessageRecord:
    id: str
    conversation_id: str
    role: Role
    content: str
    created_at: datetime
    current_phase: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)


class ConversationStore(Protocol):
    def create_conversation(self, title: str = DEFAULT_TITLE) -> Conversation:
        ...

    def get_conversation(self, conversation_id: str) -> Conversation:
        ...

    def list_conversations(self) -> List[Conversation]:
        """Most recently updated first."""
        ...

    def update_conversation_title(self, conversation_id: str, title: str) -> Conversation:
        ...

    def add_message(self, message: MessageRecord) -> None:
        ...

    def list_messages(self, conversation_id: str) -> List[MessageRecord]:
        ...

    def clear_messages(self, conversation_id: str) -> None:
        ...

    def delete_conversation(self, conversation_id: str) -> None:
        ...
