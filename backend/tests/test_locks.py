import pytest

from partyroom.errors import ANIMATION_IN_PROGRESS, GameError
from partyroom.locks import REASON_ANIMATION, REASON_FIRST_FLIP, REASON_WINNER, AnimationLockCoordinator
from partyroom.registry import Room
from partyroom.roster import PlayerRoster


@pytest.fixture()
def room():
    return Room('ABCD', 'display', PlayerRoster(), 'crazy-eights')


@pytest.fixture()
def expired():
    return []


@pytest.fixture()
def coordinator(scheduler, expired):
    return AnimationLockCoordinator(scheduler, grace_ms=2000, on_expire=lambda code, token: expired.append((code, token)))


def test_acquire_sets_deadline_and_schedules_fallback(coordinator, room, scheduler):
    coordinator.acquire(room, REASON_ANIMATION, 3300)
    assert room.is_animating
    assert room.animation_reason == REASON_ANIMATION
    assert room.animation_deadline is not None
    [(handle, _fn, args, _repeat)] = scheduler.pending()
    assert handle.delay == pytest.approx(5.3)
    assert args == ('ABCD', room.lock_token)


def test_check_rejects_unless_allow_listed(coordinator, room):
    coordinator.check(room)
    coordinator.acquire(room, REASON_ANIMATION, 3300)
    with pytest.raises(GameError) as exc:
        coordinator.check(room)
    assert exc.value.code == ANIMATION_IN_PROGRESS
    coordinator.check(room, allowed=True)


def test_winner_lock_admits_nothing(coordinator, room):
    coordinator.acquire(room, REASON_WINNER, 8000)
    with pytest.raises(GameError):
        coordinator.check(room, allowed=True)


def test_generic_release_never_clears_winner(coordinator, room):
    coordinator.acquire(room, REASON_WINNER, 8000)
    assert not coordinator.release(room)
    assert room.is_animating
    assert coordinator.release(room, REASON_WINNER)
    assert not room.is_animating


def test_reasons_do_not_release_each_other(coordinator, room):
    coordinator.acquire(room, REASON_FIRST_FLIP, 1500)
    assert not coordinator.release(room, REASON_WINNER)
    assert room.is_animating
    assert coordinator.release(room, REASON_FIRST_FLIP)
    assert room.animation_reason is None
    assert room.animation_deadline is None


def test_release_cancels_fallback(coordinator, room, scheduler, expired):
    coordinator.acquire(room, REASON_ANIMATION, 3300)
    assert coordinator.release(room)
    assert scheduler.pending() == []
    assert scheduler.run_pending() == 0
    assert expired == []


def test_fallback_fires_once_and_stale_tokens_are_ignored(coordinator, room, scheduler, expired):
    coordinator.acquire(room, REASON_ANIMATION, 3300)
    scheduler.run_pending()
    [(code, token)] = expired
    assert coordinator.expire(room, token) == REASON_ANIMATION
    assert not room.is_animating
    assert coordinator.expire(room, token) is None


def test_reacquire_invalidates_earlier_fallback(coordinator, room):
    coordinator.acquire(room, REASON_ANIMATION, 3300)
    stale = room.lock_token
    coordinator.acquire(room, REASON_WINNER, 8000)
    assert coordinator.expire(room, stale) is None
    assert room.animation_reason == REASON_WINNER
