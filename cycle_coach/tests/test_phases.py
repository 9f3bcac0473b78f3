import pytest

from cycle_coach.context.quick_messages import QUICK_MESSAGE_TITLES, build_quick_prompt
from cycle_coach.domain.phases import Phase
from cycle_coach.domain.profile import JournalEntry, Profile


def test_every_phase_has_display_data():
    assert [p.value for p in Phase] == ["menstrual", "follicular", "ovulatory", "luteal"]
    for phase in Phase:
        assert phase.display_name.endswith("Phase")
        assert phase.info.days.startswith("Days ")
        assert phase.info.foods and phase.info.support_tips


def test_phase_parse():
    assert Phase.parse("luteal") is Phase.LUTEAL
    assert Phase.parse(" Follicular ") is Phase.FOLLICULAR
    assert Phase.parse(Phase.MENSTRUAL) is Phase.MENSTRUAL
    assert Phase.parse("none") is None
    assert Phase.parse(None) is None


def test_journal_entry_rejects_unknown_phase():
    with pytest.raises(ValueError):
        JournalEntry("2024-01-01", "winter", "cold")


def test_quick_prompts_use_profile():
    profile = Profile(partner_name="Anna", dietary_preferences="vegetarian", favorite_activities="yoga")
    dinner = build_quick_prompt("dinner", Phase.LUTEAL, profile)
    assert dinner.startswith("Anna is in the luteal phase. Her dietary preferences: vegetarian.")
    activity = build_quick_prompt("activity", Phase.FOLLICULAR, profile)
    assert "Her favorite activities include: yoga" in activity


def test_quick_prompts_defaults():
    for kind in QUICK_MESSAGE_TITLES:
        text = build_quick_prompt(kind, None)
        assert "she" in text
        assert "current phase" in text
    with pytest.raises(KeyError):
        build_quick_prompt("poem", Phase.LUTEAL)
