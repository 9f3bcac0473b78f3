"""Cycle phases and love languages.

Both are closed sets, so each is an Enum whose members carry their display
data. Code never looks up labels or icons by raw string; strings coming off
the wire go through ``parse`` once and are enums from then on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class PhaseInfo:
    name: str
    days: str
    icon: str
    description: str
    foods: Tuple[str, ...]
    support_tips: Tuple[str, ...]


class Phase(Enum):
    """The four menstrual-cycle phases, in cycle order."""

    MENSTRUAL = "menstrual"
    FOLLICULAR = "follicular"
    OVULATORY = "ovulatory"
    LUTEAL = "luteal"

    @property
    def info(self) -> PhaseInfo:
        return _PHASE_INFO[self]

    @property
    def display_name(self) -> str:
        return self.info.name

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["Phase"]:
        """Map a wire value such as ``"luteal"`` to a Phase; unknown or empty gives None."""

        if isinstance(raw, Phase):
            return raw
        if not raw:
            return None
        key = str(raw).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


_PHASE_INFO = {
    Phase.MENSTRUAL: PhaseInfo(
        name="Menstrual Phase",
        days="Days 1-5",
        icon="🌙",
        description=(
            "Hormone levels (estrogen & progesterone) are at their lowest. The uterine lining is "
            "shedding. Energy is naturally lower. This is a reflective, introspective time."
        ),
        foods=(
            "Iron-rich foods (leafy greens, grass-fed beef, lentils) to replenish blood loss",
            "Omega-3s (wild salmon, walnuts) for anti-inflammatory support",
            "Warming foods (bone broth, stews, ginger tea)",
            "Sea vegetables (kelp, nori) for minerals",
            "Dark chocolate (magnesium)",
        ),
        support_tips=(
            "Lower energy is normal, this isn't laziness",
            "She may want more rest and alone time",
            "Physical comfort matters: heating pads, back rubs appreciated",
            "This is not the time for big social plans or demanding activities",
            "Listen more, fix less",
        ),
    ),
    Phase.FOLLICULAR: PhaseInfo(
        name="Follicular Phase",
        days="Days 6-13",
        icon="🌱",
        description=(
            "Estrogen rises steadily. Energy rebounds. The body is preparing to release an egg. "
            'Brain function, mood, and creativity peak. This is the "fresh start" phase.'
        ),
        foods=(
            "Light, energizing foods (salads, sprouts, fresh vegetables)",
            "Fermented foods (sauerkraut, kimchi, yogurt) to support estrogen metabolism",
            "Lean proteins (chicken, fish, eggs)",
            "Sprouted beans and seeds",
            "Citrus fruits, berries",
        ),
        support_tips=(
            "She'll likely feel more social and energetic",
            "Great time to try new activities or have adventures together",
            "She may be more decisive and action-oriented",
            "Sex drive begins increasing",
            "Good time for important conversations or planning",
        ),
    ),
    Phase.OVULATORY: PhaseInfo(
        name="Ovulatory Phase",
        days="Days 14-16",
        icon="☀️",
        description=(
            "Estrogen peaks, testosterone surges, then egg is released. This is peak energy, "
            "confidence, and communication. Libido is highest. Skin often looks its best."
        ),
        foods=(
            "Light, raw foods (smoothies, fresh salads)",
            "Fiber-rich vegetables (to clear excess estrogen)",
            "Antioxidant-rich fruits (berries, tropical fruits)",
            "Quinoa and other whole grains",
            "Lighter proteins (fish)",
        ),
        support_tips=(
            "Peak fertility window (track if trying to conceive or avoid pregnancy)",
            "She's likely feeling most confident and outgoing",
            "Communication comes easily, good for deeper talks",
            "Natural peak in attraction and desire",
            "She may be more direct or assertive than usual",
        ),
    ),
    Phase.LUTEAL: PhaseInfo(
        name="Luteal Phase",
        days="Days 17-28",
        icon="🌸",
        description=(
            "Progesterone rises then falls if no pregnancy occurs. Energy gradually declines. "
            'Body temperature rises slightly. The "nesting" phase, focus turns inward. '
            "PMS symptoms may emerge in the later days."
        ),
        foods=(
            "Complex carbs (sweet potatoes, squash, brown rice) for serotonin support",
            "B-vitamin rich foods (leafy greens, turkey, chickpeas)",
            "Magnesium-rich foods (pumpkin seeds, dark chocolate, avocado)",
            "Calcium (tahini, almonds, dairy if tolerated)",
            "Roasted vegetables, heartier meals",
            "Reduce caffeine and alcohol (they hit harder now)",
        ),
        support_tips=(
            "Energy and mood may vary: early luteal is often fine, late luteal can be tough",
            "She may be more sensitive or need more reassurance",
            "Comfort food cravings are hormone-driven, not weakness",
            "Help reduce her mental load (the little things feel bigger now)",
            "PMS is real and chemical, validate rather than dismiss",
            "Extra patience, acts of service, and physical comfort go far",
        ),
    ),
}


class LoveLanguage(Enum):
    WORDS = "words"
    ACTS = "acts"
    GIFTS = "gifts"
    TIME = "time"
    TOUCH = "touch"

    @property
    def label(self) -> str:
        return _LOVE_LANGUAGE_LABELS[self]

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["LoveLanguage"]:
        if isinstance(raw, LoveLanguage):
            return raw
        if not raw:
            return None
        key = str(raw).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


_LOVE_LANGUAGE_LABELS = {
    LoveLanguage.WORDS: "Words of Affirmation",
    LoveLanguage.ACTS: "Acts of Service",
    LoveLanguage.GIFTS: "Receiving Gifts",
    LoveLanguage.TIME: "Quality Time",
    LoveLanguage.TOUCH: "Physical Touch",
}
