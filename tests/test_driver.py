"""Tests for countdown driver module."""

import asyncio
import logging

import pytest

from fragotp import totp
from fragotp.driver import OTPSession, RefreshLoop, decay_color
from fragotp.exceptions import InvalidParameterError, PrimitiveUnavailableError

SECRET = "JBSWY3DPEHPK3PXP"
W0 = 1699999980  # start of a 30 second window
W1 = W0 + 30
T0 = W0 + 10


@pytest.fixture
def generate_calls(monkeypatch):
    """Record every call the driver makes to totp.generate."""
    calls = []
    real_generate = totp.generate

    def recording_generate(*args, **kwargs):
        calls.append(kwargs.get("now"))
        return real_generate(*args, **kwargs)

    monkeypatch.setattr(totp, "generate", recording_generate)
    return calls


def test_first_tick_generates_code():
    """Test that the first tick publishes the code for its window."""
    session = OTPSession(SECRET)
    assert session.current_code() is None

    frame = session.tick(T0)

    assert frame.code == totp.generate(SECRET, now=T0)
    assert session.current_code() == frame.code
    assert session.last_window_start == W0
    assert frame.window_start == W0
    assert frame.remaining == 20


def test_code_recomputed_once_per_window(generate_calls):
    """Test that frames within a window reuse the code."""
    session = OTPSession(SECRET)
    for i in range(600):
        session.tick(W0 + i * 0.1)

    assert generate_calls == [W0, W1]


def test_fraction_decreases_and_resets():
    """Test the smooth remaining fraction."""
    session = OTPSession(SECRET)

    fractions = [session.tick(W0 + i * 0.5).fraction for i in range(60)]
    assert fractions[0] == 1.0
    assert all(a > b for a, b in zip(fractions, fractions[1:]))
    assert all(0 < f <= 1 for f in fractions)

    assert session.tick(W0 + 15).fraction == pytest.approx(0.5)
    assert session.fraction_remaining() == pytest.approx(0.5)
    assert session.tick(W1).fraction == 1.0


def test_code_changes_at_boundary():
    """Test that a new window brings the new code."""
    session = OTPSession(SECRET)

    before = session.tick(W1 - 0.1).code
    after = session.tick(W1).code

    assert before == totp.generate(SECRET, now=W1 - 1)
    assert after == totp.generate(SECRET, now=W1)


def test_resume_after_suspend():
    """Test that a long gap between frames catches up with the clock."""
    session = OTPSession(SECRET)
    session.tick(T0)

    frame = session.tick(T0 + 3600)

    assert frame.code == totp.generate(SECRET, now=T0 + 3600)
    assert frame.window_start == totp.window_start(T0 + 3600)


def test_failed_recomputation_keeps_running(monkeypatch, caplog):
    """Test that a failing window is logged once and the next recovers."""
    real_generate = totp.generate
    failing = {"on": True}

    def flaky_generate(*args, **kwargs):
        if failing["on"]:
            raise PrimitiveUnavailableError("SHA1")
        return real_generate(*args, **kwargs)

    monkeypatch.setattr(totp, "generate", flaky_generate)
    session = OTPSession(SECRET)

    with caplog.at_level(logging.ERROR, logger="fragotp.driver"):
        for i in range(100):
            frame = session.tick(W0 + i * 0.1)

    assert frame.code is None
    assert session.current_code() is None
    assert "unavailable" in frame.error
    assert len(caplog.records) == 1

    failing["on"] = False
    frame = session.tick(W1)
    assert frame.code == real_generate(SECRET, now=W1)
    assert frame.error is None


def test_invalid_settings_rejected_up_front():
    """Test that a session cannot be built with unusable settings."""
    with pytest.raises(InvalidParameterError, match="time step"):
        OTPSession(SECRET, time_step=0)
    with pytest.raises(InvalidParameterError, match="time step"):
        OTPSession(SECRET, time_step=-30)
    with pytest.raises(InvalidParameterError, match="digits"):
        OTPSession(SECRET, digits=42)


def test_unsupported_algorithm_reported_on_frame():
    """Test that a digest failure surfaces on every frame of the window."""
    session = OTPSession(SECRET, algorithm="MD5")

    frames = [session.tick(T0 + i) for i in range(5)]

    assert all(frame.code is None for frame in frames)
    assert "MD5" in frames[-1].error
    assert frames[-1].remaining == 16


def test_refresh_loop_publishes_until_cancelled():
    """Test single-stepping the loop with a synthetic clock."""
    times = iter([T0, T0 + 10, T0 + 20, T0 + 30, T0 + 40])
    frames = []
    loop = None

    def on_frame(frame):
        frames.append(frame)
        if len(frames) == 4:
            loop.cancel()

    loop = RefreshLoop(OTPSession(SECRET), on_frame, frame_interval=0, clock=lambda: next(times))
    asyncio.run(loop.run())

    assert len(frames) == 4
    assert loop.cancelled
    assert [f.window_start for f in frames] == [W0, W0, W1, W1]

    # Nothing is published after cancellation
    assert loop.step() is None
    assert len(frames) == 4


def test_refresh_loop_cancel_wakes_sleeping_loop():
    """Test that cancel stops a loop waiting on a long frame interval."""
    frames = []
    loop = RefreshLoop(OTPSession(SECRET), frames.append, frame_interval=60, clock=lambda: T0)

    async def scenario():
        asyncio.get_running_loop().call_later(0.05, loop.cancel)
        await asyncio.wait_for(loop.run(), timeout=5)

    asyncio.run(scenario())

    assert len(frames) == 1
    assert frames[0].code == totp.generate(SECRET, now=T0)


def test_decay_color_ramp():
    """Test the indicator colour at both ends and its clamping."""
    assert decay_color(1.0) == "rgb(35,134,54)"
    assert decay_color(0.0) == "rgb(248,81,73)"
    assert decay_color(1.5) == decay_color(1.0)
    assert decay_color(-0.2) == decay_color(0.0)
    assert decay_color(0.5) != decay_color(0.9)
