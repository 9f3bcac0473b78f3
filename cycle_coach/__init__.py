"""Cycle Coach top-level package.

A relationship-coaching chat backend: it assembles a cycle-phase aware
system prompt, relays the conversation to an upstream model as a stream, and
provides the client-side decoder and turn controller that consume it.
"""

from cycle_coach.client import ChatSession, FrameDecoder
from cycle_coach.context import build_system_prompt

__all__ = ["ChatSession", "FrameDecoder", "build_system_prompt"]
