"""File-backed ContextProvider.

Layout under ``<storage_root>/profiles``::

    <user_id>.json           profile fields
    <user_id>.journal.jsonl  one {"entry_date", "phase", "notes"} object per line
"""

import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from cycle_coach.config.settings import settings
from cycle_coach.domain.exceptions import BusinessError, ValidationError
from cycle_coach.domain.profile import JournalEntry, Profile
from cycle_coach.infrastructure.logging.logger import logger

PROFILE_FIELDS = ("name", "partner_name", "love_language", "dietary_preferences", "favorite_activities")


class JsonProfileStore:
    def __init__(self, root: str | Path | None = None):
        self._root = (Path(root or settings.storage_root) / "profiles").resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    def get_profile(self, user_id: str) -> Optional[Profile]:
        path = self._user_path(user_id, ".json")
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except Exception as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e))
        return Profile(**{k: data.get(k) or None for k in PROFILE_FIELDS})

    def save_profile(self, user_id: str, profile: Profile) -> None:
        path = self._user_path(user_id, ".json")
        obj = asdict(profile)
        obj["love_language"] = profile.love_language.value if profile.love_language else None
        tmp_path = path.with_name(f"{path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, path)
        except Exception as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))

    def add_journal_entry(self, user_id: str, entry: JournalEntry) -> None:
        path = self._user_path(user_id, ".journal.jsonl")
        line = json.dumps(
            {"entry_date": entry.entry_date.isoformat(), "phase": entry.phase.value, "notes": entry.notes},
            ensure_ascii=False,
        )
        try:
            with path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception as e:
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e))

    def recent_journal(self, user_id: str, limit: int) -> List[JournalEntry]:
        path = self._user_path(user_id, ".journal.jsonl")
        if limit <= 0 or not path.exists():
            return []
        entries: List[JournalEntry] = []
        for raw in path.read_text(encoding="utf-8").splitlines():
            try:
                data = json.loads(raw)
                notes = (data.get("notes") or "").strip()
                if not notes:
                    continue
                entries.append(JournalEntry(entry_date=data["entry_date"], phase=data["phase"], notes=notes))
            except (ValueError, KeyError) as e:
                logger.warning("Skipping unreadable journal line", extra={"extra": {"user_id": user_id, "error": str(e)}})
        entries.sort(key=lambda e: e.entry_date, reverse=True)
        return entries[:limit]

    def _user_path(self, user_id: str, suffix: str) -> Path:
        if not user_id or "/" in user_id or "\\" in user_id or user_id.startswith("."):
            raise ValidationError(code="INVALID_USER_ID", message=f"Invalid user id: {user_id!r}")
        return self._root / f"{user_id}{suffix}"
