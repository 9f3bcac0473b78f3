"""Personalization data: partner profile and journal entries.

These records are read-only inputs to the context assembler. They come from
a ContextProvider and are rebuilt on every chat turn.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Protocol, Tuple

from cycle_coach.domain.phases import LoveLanguage, Phase


@dataclass
class Profile:
    """A user's profile. Every field is optional free text except love_language."""

    name: Optional[str] = None
    partner_name: Optional[str] = None
    love_language: Optional[LoveLanguage] = None
    dietary_preferences: Optional[str] = None
    favorite_activities: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.love_language, LoveLanguage):
            self.love_language = LoveLanguage.parse(self.love_language)


@dataclass
class JournalEntry:
    entry_date: date
    phase: Phase
    notes: str

    def __post_init__(self) -> None:
        if isinstance(self.entry_date, str):
            self.entry_date = date.fromisoformat(self.entry_date)
        if not isinstance(self.phase, Phase):
            parsed = Phase.parse(self.phase)
            if parsed is None:
                raise ValueError(f"Unknown phase: {self.phase!r}")
            self.phase = parsed


@dataclass
class PersonalizationContext:
    """Everything the assembler needs for one turn."""

    phase: Optional[Phase] = None
    profile: Optional[Profile] = None
    journal: Tuple[JournalEntry, ...] = field(default_factory=tuple)


class ContextProvider(Protocol):
    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Return the user's profile, or None when there is none."""
        ...

    def recent_journal(self, user_id: str, limit: int) -> List[JournalEntry]:
        """Entries with non-empty notes, newest first, at most ``limit``."""
        ...
