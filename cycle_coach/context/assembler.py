"""Builds the per-turn system instruction.

The instruction is the cycle-knowledge preamble followed by up to three
optional clauses: the current phase, the relationship profile, and recent
journal notes. A clause is left out entirely when it has nothing to say.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from cycle_coach.config.settings import settings
from cycle_coach.domain.phases import Phase
from cycle_coach.domain.profile import ContextProvider, JournalEntry, PersonalizationContext, Profile
from cycle_coach.infrastructure.logging.logger import log_event
from cycle_coach.prompts import load_system_prompt


def phase_clause(phase: Phase) -> str:
    info = phase.info
    return (
        f"CONTEXT: The current phase is the {info.name} ({info.days}). "
        "Provide relevant advice based on this phase."
    )


def relationship_clause(profile: Optional[Profile]) -> Optional[str]:
    if profile is None:
        return None
    lines: List[str] = []
    if profile.name:
        lines.append(f"- User's name: {profile.name}")
    if profile.partner_name:
        lines.append(f"- Partner's name: {profile.partner_name}")
    if profile.love_language:
        lines.append(f"- Partner's love language: {profile.love_language.label}")
    if profile.dietary_preferences:
        lines.append(f"- Partner's dietary preferences: {profile.dietary_preferences}")
    if profile.favorite_activities:
        lines.append(f"- Partner's favorite activities: {profile.favorite_activities}")
    if not lines:
        return None
    return "RELATIONSHIP CONTEXT:\n" + "\n".join(lines)


def format_journal_line(entry: JournalEntry) -> str:
    return f"{entry.entry_date.isoformat()} ({entry.phase.display_name}): {entry.notes}"


def journal_clause(entries: Iterable[JournalEntry], limit: Optional[int] = None) -> Optional[str]:
    usable = [e for e in entries if e.notes and e.notes.strip()]
    usable.sort(key=lambda e: e.entry_date, reverse=True)
    if limit is not None:
        usable = usable[:limit]
    if not usable:
        return None
    return "RECENT JOURNAL ENTRIES:\n" + "\n".join(format_journal_line(e) for e in usable)


def build_system_prompt(
    phase: Optional[Phase] = None,
    profile: Optional[Profile] = None,
    journal: Sequence[JournalEntry] = (),
    extra_journal_text: Optional[str] = None,
    limit: Optional[int] = None,
) -> str:
    """Compose the system instruction for one turn.

    ``extra_journal_text`` is a journal section the caller already rendered
    itself; it is used only when no journal clause could be built from
    ``journal``.
    """

    if limit is None:
        limit = settings.journal_context_limit
    parts = [load_system_prompt()]
    if phase is not None:
        parts.append(phase_clause(phase))
    relationship = relationship_clause(profile)
    if relationship:
        parts.append(relationship)
    journal_text = journal_clause(journal, limit=limit)
    if journal_text:
        parts.append(journal_text)
    elif extra_journal_text and extra_journal_text.strip():
        parts.append(extra_journal_text.strip())
    return "\n\n".join(parts)


def assemble_context(
    provider: Optional[ContextProvider],
    user_id: Optional[str],
    phase: Optional[Phase] = None,
    limit: Optional[int] = None,
) -> PersonalizationContext:
    """Fetch profile and journal for ``user_id``; fetch failures leave the part empty."""

    if limit is None:
        limit = settings.journal_context_limit
    ctx = PersonalizationContext(phase=phase)
    if provider is None or not user_id:
        return ctx
    log_ctx = {"user_id": user_id}

    try:
        ctx.profile = provider.get_profile(user_id)
    except Exception as e:
        log_event(logging.WARNING, "Profile fetch failed, continuing without it", log_ctx, error=str(e))

    try:
        ctx.journal = tuple(provider.recent_journal(user_id, limit))
    except Exception as e:
        log_event(logging.WARNING, "Journal fetch failed, continuing without it", log_ctx, error=str(e))

    return ctx
