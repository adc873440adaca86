from __future__ import annotations

import asyncio
from typing import Any

import pytest

from booking_chat.services.typing_tracker import TypingIndicatorTracker
from tests.conftest import TYPING_TIMEOUT

SCOPE = {"bookingId": "booking-456", "gigId": None}


@pytest.fixture
def emitted() -> list[tuple[str, dict[str, Any]]]:
    return []


@pytest.fixture
def tracker(emitted) -> TypingIndicatorTracker:
    return TypingIndicatorTracker(
        lambda event, payload: emitted.append((event, payload)),
        timeout=TYPING_TIMEOUT,
    )


def _events(emitted) -> list[str]:
    return [event for event, _ in emitted]


def test_remote_typing_set():
    tracker = TypingIndicatorTracker(lambda *_: None)
    tracker.on_remote_typing_start("u1")
    tracker.on_remote_typing_start("u1")
    tracker.on_remote_typing_start("u2")
    tracker.on_remote_typing_stop("u1")
    tracker.on_remote_typing_stop("nobody")

    assert tracker.typing_users == frozenset({"u2"})


@pytest.mark.asyncio
async def test_burst_emits_one_typing_and_one_stop(tracker, emitted):
    for _ in range(5):
        tracker.start_local_typing(SCOPE)

    assert emitted == [("typing", SCOPE)]
    assert tracker.is_local_typing

    await asyncio.sleep(TYPING_TIMEOUT * 1.5)

    assert emitted == [("typing", SCOPE), ("stop_typing", SCOPE)]
    assert not tracker.is_local_typing


@pytest.mark.asyncio
async def test_keystroke_defers_stop(tracker, emitted):
    tracker.start_local_typing(SCOPE)
    await asyncio.sleep(TYPING_TIMEOUT * 0.6)
    tracker.start_local_typing(SCOPE)
    await asyncio.sleep(TYPING_TIMEOUT * 0.6)

    assert _events(emitted) == ["typing"]

    await asyncio.sleep(TYPING_TIMEOUT)

    assert _events(emitted) == ["typing", "stop_typing"]


@pytest.mark.asyncio
async def test_new_episode_after_stop_emits_typing_again(tracker, emitted):
    tracker.start_local_typing(SCOPE)
    await asyncio.sleep(TYPING_TIMEOUT * 1.5)
    tracker.start_local_typing(SCOPE)

    assert _events(emitted) == ["typing", "stop_typing", "typing"]
    tracker.cancel_local_typing()


@pytest.mark.asyncio
async def test_explicit_stop_emits_once(tracker, emitted):
    tracker.start_local_typing(SCOPE)
    tracker.stop_local_typing()
    tracker.stop_local_typing()
    await asyncio.sleep(TYPING_TIMEOUT * 1.5)

    assert _events(emitted) == ["typing", "stop_typing"]


@pytest.mark.asyncio
async def test_cancel_drops_timer_without_stop(tracker, emitted):
    tracker.start_local_typing(SCOPE)
    tracker.cancel_local_typing()
    await asyncio.sleep(TYPING_TIMEOUT * 1.5)

    assert _events(emitted) == ["typing"]
    assert not tracker.is_local_typing


def test_stop_without_episode_emits_nothing(tracker, emitted):
    tracker.stop_local_typing()
    tracker.cancel_local_typing()

    assert emitted == []
