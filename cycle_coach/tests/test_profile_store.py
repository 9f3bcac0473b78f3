import tempfile
from datetime import date

import pytest

from cycle_coach.domain.exceptions import ValidationError
from cycle_coach.domain.phases import LoveLanguage, Phase
from cycle_coach.domain.profile import JournalEntry, Profile
from cycle_coach.infrastructure.storage.profile_store import JsonProfileStore


def test_profile_round_trip_and_missing_user():
    with tempfile.TemporaryDirectory() as d:
        store = JsonProfileStore(root=d)
        assert store.get_profile("nobody") is None

        store.save_profile("u1", Profile(name="Sam", partner_name="Anna", love_language="gifts"))
        profile = store.get_profile("u1")
        assert profile.partner_name == "Anna"
        assert profile.love_language is LoveLanguage.GIFTS
        assert profile.dietary_preferences is None


def test_recent_journal_newest_first_skips_blank_and_bad_lines():
    with tempfile.TemporaryDirectory() as d:
        store = JsonProfileStore(root=d)
        store.add_journal_entry("u1", JournalEntry("2024-01-02", Phase.MENSTRUAL, "rested"))
        store.add_journal_entry("u1", JournalEntry("2024-01-20", Phase.LUTEAL, "  "))
        store.add_journal_entry("u1", JournalEntry("2024-01-10", Phase.FOLLICULAR, "felt great"))
        with (store._root / "u1.journal.jsonl").open("a", encoding="utf-8") as f:
            f.write("not json\n")
            f.write('{"entry_date": "2024-01-11", "phase": "spring", "notes": "x"}\n')

        entries = store.recent_journal("u1", limit=10)
        assert [(e.entry_date, e.notes) for e in entries] == [
            (date(2024, 1, 10), "felt great"),
            (date(2024, 1, 2), "rested"),
        ]
        assert len(store.recent_journal("u1", limit=1)) == 1
        assert store.recent_journal("u1", limit=0) == []
        assert store.recent_journal("u2", limit=10) == []


def test_path_like_user_ids_are_rejected():
    with tempfile.TemporaryDirectory() as d:
        store = JsonProfileStore(root=d)
        with pytest.raises(ValidationError):
            store.get_profile("../etc")
