"""Per-turn personalization: system prompt assembly and quick-message prompts."""

from cycle_coach.context.assembler import assemble_context, build_system_prompt
from cycle_coach.context.quick_messages import QUICK_MESSAGE_TITLES, build_quick_prompt

__all__ = ["assemble_context", "build_system_prompt", "build_quick_prompt", "QUICK_MESSAGE_TITLES"]
