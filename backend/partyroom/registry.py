"""Room registry: every live room, keyed by its code.

All entry points run under the target room's re-entrant lock, so one
action on a room is applied completely before the next one starts. Rooms
are independent and never lock each other. Timer callbacks take the same
lock and re-check that the room and the stage they were armed for still
exist before touching anything.
"""

import logging
import random
import string
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import (
    ALREADY_IN_ROOM, GAME_IN_PROGRESS, GameError, NOT_AUTHORIZED, NOT_ENOUGH_PLAYERS,
    PLAYER_NOT_FOUND, ROOM_NOT_FOUND, UNKNOWN_MODE, WRONG_PHASE,
)
from .locks import REASON_FIRST_FLIP, REASON_WINNER, AnimationLockCoordinator
from .modes import MODES, ActionResult, GameMode, StageTimer, create_mode
from .projection import project_public, room_summary
from .roster import Player, PlayerRoster
from .settings import GameSettings

logger = logging.getLogger(__name__)

ROOM_CODE_CHARS = string.ascii_uppercase
ROOM_CODE_LENGTH = 4


@dataclass
class Room:
    code: str
    host_id: str
    roster: PlayerRoster
    mode_name: str
    mode: Optional[GameMode] = None
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    # Animation lock state, managed by AnimationLockCoordinator
    is_animating: bool = False
    animation_deadline: Optional[float] = None
    animation_reason: Optional[str] = None
    lock_token: int = 0
    lock_timer: Optional[object] = None
    stage_timer: Optional[object] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def phase(self) -> str:
        return self.mode.phase if self.mode else 'lobby'

    def touch(self) -> None:
        self.last_activity = time.time()

    def member_ids(self) -> List[str]:
        return [self.host_id] + [p.id for p in self.roster.all()]


@dataclass
class JoinResult:
    player: Player
    snapshot: dict
    reconnected: bool = False


@dataclass
class DisconnectResult:
    code: str
    room_closed: bool = False
    reason: Optional[str] = None
    player_name: Optional[str] = None
    player_color: Optional[str] = None
    roster: List[dict] = field(default_factory=list)
    followup: Optional[ActionResult] = None


class RegistryListener:
    """Outbound contract for everything that happens to a room after the
    registry accepts it. The transport subclasses this to broadcast.

    Callbacks run while the room lock is held.
    """

    def on_action_applied(self, room: Room, result: ActionResult) -> None:
        pass

    def on_winner_detected(self, room: Room, winner: Player, standings: list) -> None:
        pass

    def on_lock_released(self, room: Room, reason: str, expired: bool) -> None:
        pass

    def on_game_over(self, room: Room, winner: Optional[Player], standings: list) -> None:
        pass

    def on_player_left(self, room: Room, player: Player) -> None:
        pass

    def on_room_closed(self, code: str, reason: str, member_ids: List[str]) -> None:
        pass


class RoomRegistry:

    def __init__(self, settings: Optional[GameSettings] = None, scheduler=None,
                 listener: Optional[RegistryListener] = None, rng: Optional[random.Random] = None):
        self.settings = settings or GameSettings()
        self.scheduler = scheduler
        self.listener = listener or RegistryListener()
        self.rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._client_rooms: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._sweeper = None
        self.locks = AnimationLockCoordinator(scheduler, self.settings.animation_grace_ms, self._expire_lock)

    def init_app(self, app, scheduler=None, listener: Optional[RegistryListener] = None) -> None:
        self.reset()
        self.settings = GameSettings.from_config(app.config)
        if scheduler is not None:
            self.scheduler = scheduler
        if listener is not None:
            self.listener = listener
        self.locks = AnimationLockCoordinator(self.scheduler, self.settings.animation_grace_ms, self._expire_lock)
        app.extensions['partyroom'] = self

    def reset(self) -> None:
        """Forget every room and stop background work."""
        for room in list(self._rooms.values()):
            self._cancel_stage_timer(room)
            self.locks.reset(room)
        self._rooms.clear()
        self._client_rooms.clear()
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None

    def start_sweeper(self) -> None:
        if self.scheduler is None or self._sweeper is not None:
            return
        self._sweeper = self.scheduler.every(self.settings.room_sweep_interval_sec, self.remove_idle_rooms)

    # ---- lookup ----

    def get_room(self, code: Optional[str]) -> Optional[Room]:
        return self._rooms.get((code or '').upper())

    def room_for_client(self, client_id: str) -> Optional[Room]:
        code = self._client_rooms.get(client_id)
        return self._rooms.get(code) if code else None

    def list_rooms(self) -> List[dict]:
        return [room_summary(r) for r in list(self._rooms.values())]

    def public_view(self, code: str) -> dict:
        with self.locked(code) as room:
            return project_public(room)

    @contextmanager
    def locked(self, code: Optional[str]):
        """Yield the room with its lock held; ROOM_NOT_FOUND if it is gone."""
        room = self.get_room(code)
        if room is None:
            raise GameError(ROOM_NOT_FOUND, 'Room not found')
        with room.lock:
            if self._rooms.get(room.code) is not room:
                raise GameError(ROOM_NOT_FOUND, 'Room not found')
            yield room

    # ---- membership ----

    def create_room(self, host_id: str, mode: Optional[str] = None) -> str:
        mode_name = mode or self.settings.default_mode
        if mode_name not in MODES:
            raise GameError(UNKNOWN_MODE, f"Unknown game mode: {mode_name}")
        with self._lock:
            self._require_unbound(host_id)
            code = self._generate_code()
            self._rooms[code] = Room(code, host_id, PlayerRoster(self.settings.max_players), mode_name)
            self._client_rooms[host_id] = code
        logger.info(f"[room-created] room={code} host={host_id} mode={mode_name}")
        return code

    def claim_host(self, code: str, client_id: str, host_id: str) -> Room:
        """Bind a display socket to a room created over REST."""
        with self.locked(code) as room:
            if host_id != room.host_id and client_id != room.host_id:
                raise GameError(NOT_AUTHORIZED, 'Host id does not match this room')
            self._require_unbound(client_id, room.code)
            if self._client_rooms.get(room.host_id) == room.code:
                del self._client_rooms[room.host_id]
            room.host_id = client_id
            self._client_rooms[client_id] = room.code
            room.touch()
            return room

    def join_room(self, code: str, client_id: str, name: str) -> JoinResult:
        with self.locked(code) as room:
            if client_id == room.host_id:
                raise GameError(NOT_AUTHORIZED, 'The display cannot join as a player')
            existing = room.roster.get(client_id)
            if existing is not None:
                return JoinResult(existing, project_public(room))
            self._require_unbound(client_id, room.code)

            reconnected = False
            if room.mode is not None:
                seat = room.roster.find_by_name(name)
                if seat is None or seat.connected:
                    raise GameError(GAME_IN_PROGRESS, 'Game already in progress')
                old_id = seat.id
                player = room.roster.reconnect(seat, client_id)
                room.mode.on_player_reconnected(old_id, client_id)
                self._client_rooms.pop(old_id, None)
                reconnected = True
            else:
                player = room.roster.add(client_id, name)
            self._client_rooms[client_id] = room.code
            room.touch()
            logger.info(
                f"[player-joined] room={room.code} player={player.name} color={player.color} "
                f"first={player.is_first_player} reconnected={reconnected}"
            )
            return JoinResult(player, project_public(room), reconnected)

    def handle_disconnect(self, client_id: str) -> Optional[DisconnectResult]:
        code = self._client_rooms.pop(client_id, None)
        room = self._rooms.get(code) if code else None
        if room is None:
            return None
        with room.lock:
            if self._rooms.get(code) is not room:
                return None
            if client_id == room.host_id:
                self._close(room, 'host-disconnected')
                return DisconnectResult(code, room_closed=True, reason='host-disconnected')

            player = room.roster.get(client_id)
            if player is None:
                return None
            followup = None
            if room.mode is None:
                room.roster.remove(client_id)
            else:
                room.roster.mark_disconnected(client_id)
                followup = room.mode.on_player_disconnected(client_id)
            room.touch()
            logger.info(f"[player-left] room={room.code} player={player.name} in_game={room.mode is not None}")
            self.listener.on_player_left(room, player)
            if followup is not None:
                self._settle(room, followup)
                self._publish(room, followup)
            return DisconnectResult(
                code,
                player_name=player.name,
                player_color=player.color,
                roster=room.roster.summary(),
                followup=followup,
            )

    def remove_idle_rooms(self, threshold_sec: Optional[float] = None) -> List[str]:
        threshold = self.settings.room_idle_timeout_sec if threshold_sec is None else threshold_sec
        now = time.time()
        closed = []
        for room in list(self._rooms.values()):
            if now - room.last_activity <= threshold:
                continue
            with room.lock:
                if self._rooms.get(room.code) is room and now - room.last_activity > threshold:
                    self._close(room, 'idle')
                    closed.append(room.code)
        if closed:
            logger.info(f"[sweep] closed idle rooms {', '.join(closed)}")
        return closed

    def request_new_room(self, code: str, requester_id: str) -> str:
        """Close this room and open an empty one for the same display."""
        with self.locked(code) as room:
            self._require_controller(room, requester_id)
            host_id, mode_name = room.host_id, room.mode_name
            self._close(room, 'new-players')
        return self.create_room(host_id, mode_name)

    # ---- game flow ----

    def start_game(self, code: str, requester_id: str, mode: Optional[str] = None) -> ActionResult:
        with self.locked(code) as room:
            self._require_controller(room, requester_id)
            if room.mode is not None and not room.mode.is_finished:
                raise GameError(GAME_IN_PROGRESS, 'Game already in progress')
            return self._begin(room, mode or room.mode_name)

    def restart_game(self, code: str, requester_id: str) -> ActionResult:
        with self.locked(code) as room:
            self._require_controller(room, requester_id)
            if room.mode is None:
                raise GameError(WRONG_PHASE, 'Game has not started')
            return self._begin(room, room.mode_name, restarted=True)

    def apply_action(self, code: str, client_id: str, action) -> ActionResult:
        """Gate, apply and settle one player action."""
        with self.locked(code) as room:
            if room.mode is None:
                raise GameError(WRONG_PHASE, 'Game has not started')
            player = room.roster.require(client_id)
            if not player.connected:
                raise GameError(PLAYER_NOT_FOUND, 'You are no longer connected to this room')
            self.locks.check(room, room.mode.allowed_while_locked(client_id, action))
            result = room.mode.apply_action(client_id, action)
            self._settle(room, result)
            room.touch()
            self._publish(room, result)
            return result

    def animation_complete(self, client_id: str, code: Optional[str] = None) -> bool:
        with self.locked(self._display_code(client_id, code)) as room:
            self._require_host(room, client_id)
            reason = room.animation_reason
            if not self.locks.release(room):
                return False
            self._after_release(room, reason, expired=False)
            return True

    def first_card_flip_complete(self, client_id: str, code: Optional[str] = None) -> bool:
        with self.locked(self._display_code(client_id, code)) as room:
            self._require_host(room, client_id)
            if not self.locks.release(room, REASON_FIRST_FLIP):
                return False
            self._after_release(room, REASON_FIRST_FLIP, expired=False)
            return True

    def winner_animation_complete(self, client_id: str, code: str, winner: Optional[str] = None) -> dict:
        with self.locked(code) as room:
            self._require_host(room, client_id)
            if room.phase != 'winner-animation':
                raise GameError(WRONG_PHASE, 'No winner sequence is running')
            if self.locks.release(room, REASON_WINNER):
                self.listener.on_lock_released(room, REASON_WINNER, False)
            expected = getattr(room.mode, 'winner_id', None)
            expected_player = room.roster.get(expected) if expected else None
            if winner and expected_player and winner != expected_player.name:
                logger.warning(f"[winner-mismatch] room={room.code} display={winner} engine={expected_player.name}")
            self._complete_winner(room)
            return project_public(room)

    # ---- internals ----

    def _begin(self, room: Room, mode_name: str, restarted: bool = False) -> ActionResult:
        if len(room.roster.connected()) < self.settings.min_players:
            raise GameError(NOT_ENOUGH_PLAYERS, f"Need at least {self.settings.min_players} players to start")
        for p in room.roster.all():
            if not p.connected:
                room.roster.remove(p.id)
        self._cancel_stage_timer(room)
        self.locks.reset(room)
        room.mode = create_mode(mode_name, room.roster, self.settings, self.rng)
        room.mode_name = mode_name
        result = room.mode.start()
        result.data['restarted'] = restarted
        self._settle(room, result)
        room.touch()
        self._publish(room, result)
        return result

    def _settle(self, room: Room, result: ActionResult) -> None:
        if result.lock is not None:
            self.locks.acquire(room, result.lock.reason, result.lock.duration_ms)
        if result.timer is not None:
            self._schedule_stage(room, result.timer)
        elif room.mode is not None and room.mode.is_finished:
            self._cancel_stage_timer(room)

    def _publish(self, room: Room, result: ActionResult) -> None:
        self.listener.on_action_applied(room, result)
        for followup in result.followups:
            self.listener.on_action_applied(room, followup)
        if result.winner_id:
            self.listener.on_winner_detected(room, room.roster.get(result.winner_id), room.mode.standings())

    def _after_release(self, room: Room, reason: Optional[str], expired: bool) -> None:
        if room.mode is not None:
            room.mode.on_animation_released()
        room.touch()
        self.listener.on_lock_released(room, reason, expired)

    def _complete_winner(self, room: Room) -> None:
        room.mode.on_winner_sequence_complete()
        winner_id = getattr(room.mode, 'winner_id', None)
        winner = room.roster.get(winner_id) if winner_id else None
        room.touch()
        logger.info(f"[game-over] room={room.code} winner={winner.name if winner else None}")
        self.listener.on_game_over(room, winner, room.mode.standings())

    def _expire_lock(self, code: str, token: int) -> None:
        room = self.get_room(code)
        if room is None:
            logger.info(f"[lock-abort] room={code} no longer exists")
            return
        with room.lock:
            if self._rooms.get(code) is not room:
                return
            reason = self.locks.expire(room, token)
            if reason is None:
                return
            if reason == REASON_WINNER:
                self.listener.on_lock_released(room, reason, True)
                if room.phase == 'winner-animation':
                    self._complete_winner(room)
            else:
                self._after_release(room, reason, expired=True)

    def _schedule_stage(self, room: Room, timer: StageTimer) -> None:
        self._cancel_stage_timer(room)
        if self.scheduler is None:
            return
        room.stage_timer = self.scheduler.call_later(
            timer.delay_sec, self._fire_stage, room.code, timer.stage, timer.round_number
        )
        logger.info(
            f"[timer-set] room={room.code} stage={timer.stage} round={timer.round_number} delay={timer.delay_sec}s"
        )

    def _fire_stage(self, code: str, stage: str, round_number: int) -> None:
        room = self.get_room(code)
        if room is None:
            logger.info(f"[timer-abort] room={code} no longer exists")
            return
        with room.lock:
            mode = room.mode
            if self._rooms.get(code) is not room or mode is None:
                return
            if mode.phase != stage or getattr(mode, 'round_number', 0) != round_number:
                logger.info(
                    f"[timer-abort] room={code} expected={stage}/{round_number} "
                    f"actual={mode.phase}/{getattr(mode, 'round_number', 0)}"
                )
                return
            room.stage_timer = None
            logger.info(f"[timer-fire] room={code} stage={stage} round={round_number}")
            result = mode.on_timer(stage)
            if result is None:
                return
            self._settle(room, result)
            room.touch()
            self._publish(room, result)

    @staticmethod
    def _cancel_stage_timer(room: Room) -> None:
        if room.stage_timer is not None:
            room.stage_timer.cancel()
            room.stage_timer = None

    def _close(self, room: Room, reason: str) -> None:
        members = room.member_ids()
        with self._lock:
            self._rooms.pop(room.code, None)
            for member in members:
                if self._client_rooms.get(member) == room.code:
                    del self._client_rooms[member]
        self._cancel_stage_timer(room)
        self.locks.reset(room)
        logger.info(f"[room-closed] room={room.code} reason={reason}")
        self.listener.on_room_closed(room.code, reason, members)

    def _generate_code(self) -> str:
        while True:
            code = ''.join(self.rng.choice(ROOM_CODE_CHARS) for _ in range(ROOM_CODE_LENGTH))
            if code not in self._rooms:
                return code

    def _display_code(self, client_id: str, code: Optional[str]) -> str:
        if code:
            return code
        room = self.room_for_client(client_id)
        if room is None or room.host_id != client_id:
            raise GameError(ROOM_NOT_FOUND, 'No room is hosted by this display')
        return room.code

    def _require_unbound(self, client_id: str, code: Optional[str] = None) -> None:
        """One live room per client; leaving happens through disconnect."""
        bound = self.room_for_client(client_id)
        if bound is not None and bound.code != code:
            raise GameError(ALREADY_IN_ROOM, f"Already in room {bound.code}")

    @staticmethod
    def _require_host(room: Room, client_id: str) -> None:
        if client_id != room.host_id:
            raise GameError(NOT_AUTHORIZED, 'Only the display can report animations')

    @staticmethod
    def _require_controller(room: Room, client_id: str) -> None:
        player = room.roster.get(client_id)
        if client_id != room.host_id and not (player and player.is_first_player):
            raise GameError(NOT_AUTHORIZED, 'Only the host or first player can do that')
