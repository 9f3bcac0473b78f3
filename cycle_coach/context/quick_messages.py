"""Canned user prompts for the quick-message menu."""

from typing import Dict, Optional

from cycle_coach.domain.phases import Phase
from cycle_coach.domain.profile import Profile

QUICK_MESSAGE_TITLES: Dict[str, str] = {
    "support": "Send Support",
    "morning": "Good Morning Text",
    "dinner": "Dinner Suggestion",
    "activity": "Activity Idea",
    "checkin": "Check-in Message",
    "goodnight": "Goodnight Text",
}


def build_quick_prompt(kind: str, phase: Optional[Phase], profile: Optional[Profile] = None) -> str:
    """Return the user message for quick-message ``kind``.

    Raises KeyError for an unknown kind.
    """

    if kind not in QUICK_MESSAGE_TITLES:
        raise KeyError(f"Unknown quick message kind: {kind!r}")
    profile = profile or Profile()
    partner = profile.partner_name or "she"
    phase_name = phase.value if phase else "current"
    prefix = f"{partner} is in the {phase_name} phase"

    if kind == "support":
        return (
            f"{partner} is currently in the {phase_name} phase. Can you write me a short, sweet, and "
            "supportive text message I can send her right now? Keep it personal and loving, around 2-3 sentences."
        )
    if kind == "morning":
        return (
            f"{prefix}. Write me a sweet good morning text message that acknowledges how she might be "
            "feeling today. Keep it warm and phase-appropriate, 2-3 sentences."
        )
    if kind == "dinner":
        diet = f". Her dietary preferences: {profile.dietary_preferences}" if profile.dietary_preferences else ""
        return (
            f"{prefix}{diet}. Suggest a meal I could make or order for her tonight that would be both "
            "comforting and good for this phase. Include a sweet message I could send asking if she'd like "
            "that for dinner."
        )
    if kind == "activity":
        acts = f". Her favorite activities include: {profile.favorite_activities}" if profile.favorite_activities else ""
        return (
            f"{prefix}{acts}. Suggest something we could do together that matches her likely energy level "
            "for this phase. Include a message I could send suggesting it."
        )
    if kind == "checkin":
        return (
            f'{prefix}. Write me a thoughtful "just checking in" text message. Not overbearing, just showing '
            "I'm thinking about her. Phase-appropriate tone, 2-3 sentences."
        )
    return (
        f"{prefix}. Write me a sweet bedtime message that acknowledges the phase and helps her feel loved "
        "as she winds down. 2-3 sentences."
    )
