"""System prompt loading.

Prompt texts live next to this module as ``<locale>/<name>.md`` so they can be
edited without touching code.
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_system_prompt(name: str = "cycle_knowledge", locale: str = "en") -> str:
    """Return the prompt text for ``name``, without surrounding whitespace."""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").strip()
