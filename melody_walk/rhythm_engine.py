"""Periodic speed curves that shape the melody's rhythm.

The melody closes a note whenever its progress accumulator passes ``1``.
How fast progress grows is set here: a periodic curve in ``[-1, 1]`` sweeps
the average note length between ``min_len`` and ``max_len`` so the line
alternates between busy and calm passages. ``steady`` stretches the period,
measured in measures.

Two curve shapes are available:

``sine``
    ``cos(2 * pi * t)``, a smooth swing between long and short notes.
``sawtooth``
    ``1 - 2 * (t mod 1)``, a gradual speed-up that snaps back to long notes
    at every period boundary.
"""

from __future__ import annotations

import math

from . import MEASURE, STEP
from .config import Config, RhythmStyle

__all__ = ["rhythm_clock", "shaping_value", "note_speed"]


def rhythm_clock(style: RhythmStyle, time: int, steady: float) -> float:
    """Return the curve argument for step ``time``.

    Both curves complete one period every ``steady`` measures; the sine
    curve takes its argument in radians.
    """

    periods = time / (STEP * MEASURE) / steady
    if style is RhythmStyle.SINE:
        return periods * 2.0 * math.pi
    return periods


def shaping_value(style: RhythmStyle, clock: float) -> float:
    """Evaluate the curve selected by ``style`` at ``clock``."""

    if style is RhythmStyle.SINE:
        return math.cos(clock)
    if style is RhythmStyle.SAWTOOTH:
        return 1.0 - 2.0 * (clock % 1.0)
    raise ValueError(f"Unsupported rhythm style: {style!r}")


def note_speed(config: Config, time: int) -> float:
    """Return the progress gained at step ``time``.

    The reciprocal of the current target note length, which swings around
    the midpoint of ``[min_len, max_len]`` by half the range.
    """

    mid = (config.max_len + config.min_len) / 2.0
    dev = (config.max_len - config.min_len) / 2.0
    shape = shaping_value(config.rhythm, rhythm_clock(config.rhythm, time, config.steady))
    return 1.0 / (dev * shape + mid)
