"""Chat client: stream decoding, relay transport and the turn controller."""

from cycle_coach.client.decoder import FrameDecoder, iter_deltas
from cycle_coach.client.session import ChatSession, Notice, SessionState
from cycle_coach.client.transport import HttpRelayTransport

__all__ = ["FrameDecoder", "iter_deltas", "ChatSession", "Notice", "SessionState", "HttpRelayTransport"]
