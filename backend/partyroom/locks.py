"""Animation lock: a timed gate held while the shared display animates.

The server cannot see the display's animations, only the "finished" signal
that arrives afterwards. While a lock is held, only actions the room's game
mode allow-lists may mutate state. Every lock is backed by a fallback timer
at ``deadline + grace`` so a display that never reports back cannot freeze
the room; the timer carries a token and is ignored once the lock it was
armed for has been released.
"""

import logging
import time
from typing import Callable, Optional

from .errors import ANIMATION_IN_PROGRESS, GameError

logger = logging.getLogger(__name__)

REASON_ANIMATION = 'animation'
REASON_FIRST_FLIP = 'first-card-flip'
REASON_WINNER = 'winner'


class AnimationLockCoordinator:

    def __init__(self, scheduler=None, grace_ms: int = 2000,
                 on_expire: Optional[Callable[[str, int], None]] = None):
        self.scheduler = scheduler
        self.grace_ms = grace_ms
        # Called with (room_code, token) when a fallback timer fires.
        self.on_expire = on_expire

    def acquire(self, room, reason: str, duration_ms: int) -> None:
        """Hold the lock for `reason`, replacing any lock already held."""
        self._cancel_fallback(room)
        room.lock_token += 1
        room.is_animating = True
        room.animation_reason = reason
        room.animation_deadline = time.time() + duration_ms / 1000.0
        if self.scheduler is not None and self.on_expire is not None:
            delay = (duration_ms + self.grace_ms) / 1000.0
            room.lock_timer = self.scheduler.call_later(delay, self.on_expire, room.code, room.lock_token)
        logger.info(f"[lock-acquire] room={room.code} reason={reason} duration={duration_ms}ms")

    def release(self, room, reason: Optional[str] = None) -> bool:
        """Clear the lock if `reason` may release it.

        With no reason (the generic completion signal) anything but the
        winner sequence is cleared; the winner reason clears only itself.
        """
        if not room.is_animating:
            return False
        if reason is None:
            if room.animation_reason == REASON_WINNER:
                logger.info(f"[lock-keep] room={room.code} generic release ignored during winner sequence")
                return False
        elif reason != room.animation_reason:
            logger.info(f"[lock-keep] room={room.code} held={room.animation_reason} release={reason}")
            return False
        self._clear(room)
        return True

    def expire(self, room, token: int) -> Optional[str]:
        """Fallback release. Returns the expired reason, or None if the timer is stale."""
        if not room.is_animating or room.lock_token != token:
            return None
        reason = room.animation_reason
        logger.warning(f"[lock-expire] room={room.code} reason={reason} no completion signal received")
        self._clear(room)
        return reason

    def check(self, room, allowed: bool = False) -> None:
        """Reject a mutating action while locked unless the caller allow-listed it."""
        if room.is_animating and not (allowed and room.animation_reason != REASON_WINNER):
            raise GameError(ANIMATION_IN_PROGRESS, 'Animation in progress')

    def reset(self, room) -> None:
        """Drop any lock without reporting it, for teardown and restarts."""
        self._clear(room)

    def _clear(self, room) -> None:
        self._cancel_fallback(room)
        room.lock_token += 1
        room.is_animating = False
        room.animation_reason = None
        room.animation_deadline = None

    @staticmethod
    def _cancel_fallback(room) -> None:
        if room.lock_timer is not None:
            room.lock_timer.cancel()
            room.lock_timer = None
