"""Countdown driver keeping a displayed code in step with the clock.

The code only changes on window boundaries while the remaining-time
fraction is recomputed on every frame from the wall clock, so a display
that was suspended catches up on its next frame instead of drifting.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from . import totp
from .exceptions import OTPError

logger = logging.getLogger(__name__)

DEFAULT_FRAME_INTERVAL = 1 / 30


@dataclass(frozen=True)
class Frame:
    """Values published to the display for one frame."""

    code: Optional[str]
    fraction: float
    remaining: int
    window_start: int
    error: Optional[str] = None


class OTPSession:
    """Live code state for one secret."""

    def __init__(
        self,
        secret: str,
        time_step: int = totp.DEFAULT_TIME_STEP,
        digits: int = totp.DEFAULT_DIGITS,
        algorithm: str = totp.DEFAULT_ALGORITHM,
    ):
        """Initialize the session.

        Args:
            secret: Base32 encoded shared secret
            time_step: Window length in seconds
            digits: Number of digits in the code
            algorithm: HMAC digest name

        Raises:
            InvalidParameterError: If time_step or digits is out of range
        """
        totp.check_time_step(time_step)
        totp.check_digits(digits)
        self.secret = secret
        self.time_step = time_step
        self.digits = digits
        self.algorithm = algorithm
        self.last_window_start: Optional[int] = None
        self.error: Optional[str] = None
        self._code: Optional[str] = None
        self._fraction = 1.0

    def current_code(self) -> Optional[str]:
        """The code for the last window seen, None if it failed."""
        return self._code

    def fraction_remaining(self) -> float:
        """Share of the current window still left, as of the last tick."""
        return self._fraction

    def tick(self, now: float) -> Frame:
        """Advance the session to ``now``.

        Regenerates the code when ``now`` falls in a different window than
        the previous tick, then updates the remaining fraction.

        Args:
            now: Current Unix time, fractional seconds allowed

        Returns:
            The frame to display
        """
        start = totp.window_start(now, self.time_step)
        if start != self.last_window_start:
            self.last_window_start = start
            self._refresh(start)

        self._fraction = 1 - (now - start) / self.time_step
        return Frame(
            code=self._code,
            fraction=self._fraction,
            remaining=totp.get_time_remaining(self.time_step, now),
            window_start=start,
            error=self.error,
        )

    def _refresh(self, start: int) -> None:
        try:
            self._code = totp.generate(
                self.secret,
                time_step=self.time_step,
                digits=self.digits,
                now=start,
                algorithm=self.algorithm,
            )
            self.error = None
        except OTPError as e:
            # Retried on the next window; a failing window is logged once
            self._code = None
            self.error = str(e)
            logger.error("Failed to generate code for window %d: %s", start, e)


class RefreshLoop:
    """Repeating frame task that drives an OTPSession until cancelled."""

    def __init__(
        self,
        session: OTPSession,
        on_frame: Callable[[Frame], None],
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the loop.

        Args:
            session: Session to tick
            on_frame: Called with every published frame
            frame_interval: Seconds between frames
            clock: Source of the current Unix time
        """
        self.session = session
        self.on_frame = on_frame
        self.frame_interval = frame_interval
        self.clock = clock
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop the loop; no frame is published after this returns."""
        self._cancelled.set()

    def step(self) -> Optional[Frame]:
        """Run a single frame, unless the loop was cancelled."""
        if self.cancelled:
            return None
        frame = self.session.tick(self.clock())
        self.on_frame(frame)
        return frame

    async def run(self) -> None:
        """Publish frames until cancelled."""
        while self.step() is not None:
            try:
                await asyncio.wait_for(self._cancelled.wait(), self.frame_interval)
            except asyncio.TimeoutError:
                continue


def _mix(start: tuple[int, int, int], end: tuple[int, int, int], factor: float) -> str:
    r, g, b = (round(a + (z - a) * factor) for a, z in zip(start, end))
    return f"rgb({r},{g},{b})"


_GREEN = (35, 134, 54)
_YELLOW = (210, 153, 34)
_ORANGE = (247, 129, 102)
_RED = (248, 81, 73)


def decay_color(fraction: float) -> str:
    """Colour of the countdown indicator for the remaining fraction.

    Green while most of the window is left, through yellow and orange,
    to red as the window runs out.
    """
    fraction = min(max(fraction, 0.0), 1.0)
    if fraction > 0.66:
        return _mix(_GREEN, _YELLOW, (1 - fraction) / 0.34)
    if fraction > 0.33:
        return _mix(_YELLOW, _ORANGE, (0.66 - fraction) / 0.33)
    return _mix(_ORANGE, _RED, (0.33 - fraction) / 0.33)
