import json
import os
import shutil
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List
from uuid import uuid4

from cycle_coach.config.settings import settings
from cycle_coach.domain.conversation import (
    DEFAULT_TITLE,
    Conversation,
    ConversationStore,
    MessageRecord,
)
from cycle_coach.domain.exceptions import BusinessError, NotFoundError


def _to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _from_iso(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class JsonConversationStore(ConversationStore):
    """One directory per conversation: ``meta.json`` plus append-only ``messages.jsonl``."""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._conv_root = self._root / "conversations"
        self._conv_root.mkdir(parents=True, exist_ok=True)

    def create_conversation(self, title: str = DEFAULT_TITLE) -> Conversation:
        cid = f"c-{uuid4().hex}"
        cdir = self._conv_root / cid
        cdir.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        conv = Conversation(id=cid, title=title or DEFAULT_TITLE, created_at=now, updated_at=now)
        self._write_meta(cdir, conv)
        return conv

    def get_conversation(self, conversation_id: str) -> Conversation:
        meta_path = self._conv_dir(conversation_id) / "meta.json"
        if not meta_path.exists():
            raise NotFoundError(code="CONVERSATION_NOT_FOUND", message=conversation_id)
        try:
            data = json.loads(meta_path.read_text(encoding="utf-8"))
        except Exception as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        return self._to_conversation(data)

    def list_conversations(self) -> List[Conversation]:
        items: List[Conversation] = []
        for cdir in self._conv_root.glob("*/"):
            meta_path = cdir / "meta.json"
            if not meta_path.exists():
                continue
            try:
                items.append(self._to_conversation(json.loads(meta_path.read_text(encoding="utf-8"))))
            except (ValueError, KeyError):
                continue
        items.sort(key=lambda c: c.updated_at, reverse=True)
        return items

    def update_conversation_title(self, conversation_id: str, title: str) -> Conversation:
        conv = self.get_conversation(conversation_id)
        conv.title = title
        conv.updated_at = datetime.now(timezone.utc)
        self._write_meta(self._conv_dir(conversation_id), conv)
        return conv

    def add_message(self, message: MessageRecord) -> None:
        conv = self.get_conversation(message.conversation_id)
        cdir = self._conv_dir(message.conversation_id)
        try:
            payload = asdict(message)
            payload["created_at"] = _to_iso(message.created_at)
            with (cdir / "messages.jsonl").open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False) + "\n")
        except Exception as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))
        conv.updated_at = datetime.now(timezone.utc)
        self._write_meta(cdir, conv)

    def list_messages(self, conversation_id: str) -> List[MessageRecord]:
        msgs_path = self._conv_dir(conversation_id) / "messages.jsonl"
        items: List[MessageRecord] = []
        if not msgs_path.exists():
            return items
        for line in msgs_path.read_text(encoding="utf-8").splitlines():
            try:
                items.append(self._to_message(json.loads(line)))
            except (ValueError, KeyError):
                continue
        # stable sort keeps file order for equal timestamps
        items.sort(key=lambda m: m.created_at)
        return items

    def clear_messages(self, conversation_id: str) -> None:
        conv = self.get_conversation(conversation_id)
        cdir = self._conv_dir(conversation_id)
        try:
            (cdir / "messages.jsonl").unlink(missing_ok=True)
        except Exception as e:
            raise BusinessError(code="STORE_DELETE_ERROR", message=str(e))
        conv.updated_at = datetime.now(timezone.utc)
        self._write_meta(cdir, conv)

    def delete_conversation(self, conversation_id: str) -> None:
        cdir = self._conv_dir(conversation_id)
        if not cdir.exists():
            raise NotFoundError(code="CONVERSATION_NOT_FOUND", message=conversation_id)
        try:
            shutil.rmtree(cdir)
        except Exception as e:
            raise BusinessError(code="STORE_DELETE_ERROR", message=str(e))

    def _conv_dir(self, conversation_id: str) -> Path:
        # ids are generated here; anything path-like is rejected outright
        if not conversation_id or "/" in conversation_id or "\\" in conversation_id or conversation_id.startswith("."):
            raise NotFoundError(code="CONVERSATION_NOT_FOUND", message=str(conversation_id))
        return self._conv_root / conversation_id

    def _write_meta(self, cdir: Path, conv: Conversation) -> None:
        meta_path = cdir / "meta.json"
        tmp_path = cdir / f"meta.{uuid4().hex}.json.tmp"
        obj = {
            "id": conv.id,
            "title": conv.title,
            "created_at": _to_iso(conv.created_at),
            "updated_at": _to_iso(conv.updated_at),
        }
        try:
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, meta_path)
        except Exception as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))

    @staticmethod
    def _to_conversation(data: Dict[str, Any]) -> Conversation:
        return Conversation(
            id=data["id"],
            title=data.get("title") or DEFAULT_TITLE,
            created_at=_from_iso(data["created_at"]),
            updated_at=_from_iso(data["updated_at"]),
        )

    @staticmethod
    def _to_message(data: Dict[str, Any]) -> MessageRecord:
        return MessageRecord(
            id=data["id"],
            conversation_id=data["conversation_id"],
            role=data["role"],
            content=data.get("content") or "",
            created_at=_from_iso(data["created_at"]),
            current_phase=data.get("current_phase"),
            meta=data.get("meta") or {},
        )
