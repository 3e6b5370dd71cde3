"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum


class SessionState(Enum):
    """Lifecycle state of a guild's voice session, with enforced transitions.

    A session that is not in the store is "absent"; there is no member for it.

    State transitions:
    - CONNECTING -> LOADING (voice acquired, opening the first stream)
    - LOADING -> PLAYING (stream handed to the player)
    - LOADING -> LOADING (stream failed, opening the next song)
    - PLAYING <-> PAUSED
    - PLAYING / PAUSED -> LOADING (song ended, opening the next one)
    - Any -> DRAINING (queue empty, stop, or unrecoverable error)
    """

    CONNECTING = "connecting"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    DRAINING = "draining"

    def can_transition_to(self, target: SessionState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            SessionState.CONNECTING: {SessionState.LOADING, SessionState.DRAINING},
            SessionState.LOADING: {
                SessionState.LOADING,
                SessionState.PLAYING,
                SessionState.DRAINING,
            },
            SessionState.PLAYING: {
                SessionState.PAUSED,
                SessionState.LOADING,
                SessionState.DRAINING,
            },
            SessionState.PAUSED: {
                SessionState.PLAYING,
                SessionState.LOADING,
                SessionState.DRAINING,
            },
            SessionState.DRAINING: set(),
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_audio_active(self) -> bool:
        """True while the player holds a stream (playing or paused)."""
        return self in {SessionState.PLAYING, SessionState.PAUSED}


class AdvanceReason(Enum):
    """Why the head of a queue was dropped."""

    FINISHED = "finished"
    SKIPPED = "skipped"
    ERROR = "error"


class TeardownReason(Enum):
    """Why a session was torn down and removed from the store."""

    DRAINED = "drained"
    STOPPED = "stopped"
    ABORTED = "aborted"
    SHUTDOWN = "shutdown"
