import tempfile
import time
from pathlib import Path
from datetime import datetime, timezone

import pytest

from cycle_coach.infrastructure.storage.json_store import JsonConversationStore
from cycle_coach.domain.conversation import DEFAULT_TITLE, MessageRecord
from cycle_coach.domain.exceptions import NotFoundError


def _message(conv_id, mid, role="user", content="hi"):
    return MessageRecord(
        id=mid,
        conversation_id=conv_id,
        role=role,
        content=content,
        created_at=datetime.now(timezone.utc),
        current_phase="luteal",
    )


def test_json_store_create_and_messages():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        store = JsonConversationStore(root=root)
        conv = store.create_conversation()
        assert conv.title == DEFAULT_TITLE

        store.add_message(_message(conv.id, "m1", content="How can I help?"))
        store.add_message(_message(conv.id, "m2", role="assistant", content="Try bringing her tea ☕."))
        msgs = store.list_messages(conv.id)
        assert [m.id for m in msgs] == ["m1", "m2"]
        assert msgs[1].content == "Try bringing her tea ☕."
        assert msgs[0].current_phase == "luteal"


def test_json_store_orders_by_last_update():
    with tempfile.TemporaryDirectory() as d:
        store = JsonConversationStore(root=Path(d) / ".storage")
        older = store.create_conversation("older")
        time.sleep(0.01)
        newer = store.create_conversation("newer")
        assert [c.id for c in store.list_conversations()] == [newer.id, older.id]

        time.sleep(0.01)
        store.add_message(_message(older.id, "m1"))
        assert [c.id for c in store.list_conversations()] == [older.id, newer.id]


def test_json_store_rename_and_clear():
    with tempfile.TemporaryDirectory() as d:
        store = JsonConversationStore(root=Path(d) / ".storage")
        conv = store.create_conversation()
        store.add_message(_message(conv.id, "m1"))

        assert store.update_conversation_title(conv.id, "Date ideas").title == "Date ideas"
        assert store.get_conversation(conv.id).title == "Date ideas"

        store.clear_messages(conv.id)
        assert store.list_messages(conv.id) == []
        assert store.get_conversation(conv.id).id == conv.id


def test_json_store_delete_conversation():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        store = JsonConversationStore(root=root)
        conv = store.create_conversation("temp")
        conv_dir = root / "conversations" / conv.id
        assert conv_dir.exists()
        store.delete_conversation(conv.id)
        assert not conv_dir.exists()
        assert conv.id not in {c.id for c in store.list_conversations()}


def test_json_store_unknown_or_path_like_ids():
    with tempfile.TemporaryDirectory() as d:
        store = JsonConversationStore(root=Path(d) / ".storage")
        with pytest.raises(NotFoundError):
            store.get_conversation("c-missing")
        with pytest.raises(NotFoundError):
            store.get_conversation("../outside")
        with pytest.raises(NotFoundError):
            store.add_message(_message("c-missing", "m1"))
