"""Conversion between step counts and LilyPond note lengths.

Durations are counted in sixteenth-note steps. Any length from one step up
to just under two whole notes can be written as a chain of dotted base
lengths joined by ties, read directly from the binary digits of the step
count: the highest set bit selects the base length, each set bit directly
below it adds a dot, and a gap followed by another set bit starts a new tied
length.

Example
-------
>>> encode_duration(7)
['4..']
>>> encode_duration(9)
['2', '16']
>>> decode_duration("2~16")
9
"""

from __future__ import annotations

from typing import Iterable, List, Union

from . import MEASURE, STEP

__all__ = ["encode_duration", "decode_duration", "split_duration", "MAX_DURATION"]

# Base lengths indexed by bit position: sixteenth, eighth, quarter, half, whole.
_BASE_LENGTHS = ("16", "8", "4", "2", "1")

# Longest duration expressible with a whole note as the largest base length.
MAX_DURATION = (1 << len(_BASE_LENGTHS)) - 1


def encode_duration(duration: int) -> List[str]:
    """Return the tied components spelling ``duration`` steps.

    Parameters
    ----------
    duration:
        Positive number of sixteenth-note steps, at most ``MAX_DURATION``.

    Returns
    -------
    List[str]
        LilyPond lengths such as ``"4."``. Joining them with ``"~"`` gives
        the notation for a single tied note.

    Raises
    ------
    ValueError
        If ``duration`` is below ``1`` or above ``MAX_DURATION``.
    """

    if not 1 <= duration <= MAX_DURATION:
        raise ValueError(
            f"duration must be between 1 and {MAX_DURATION} steps, got {duration}"
        )
    components: List[str] = []
    magnitude = duration.bit_length() - 1
    while magnitude >= 0:
        if not duration & (1 << magnitude):
            magnitude -= 1
            continue
        text = _BASE_LENGTHS[magnitude]
        magnitude -= 1
        while magnitude >= 0 and duration & (1 << magnitude):
            text += "."
            magnitude -= 1
        components.append(text)
    return components


def _decode_component(text: str) -> int:
    base = text.rstrip(".")
    if base not in _BASE_LENGTHS:
        raise ValueError(f"Unknown note length: {text!r}")
    value = 16 // int(base)
    total = value
    for _ in range(len(text) - len(base)):
        value //= 2
        total += value
    return total


def decode_duration(notation: Union[str, Iterable[str]]) -> int:
    """Return the step count of a tied length such as ``"2~8."``.

    ``notation`` may also be the list returned by :func:`encode_duration`.
    """

    parts = notation.split("~") if isinstance(notation, str) else list(notation)
    return sum(_decode_component(part.strip()) for part in parts)


def split_duration(
    duration: int, measure_left: int, measure_len: int = STEP * MEASURE
) -> List[int]:
    """Split ``duration`` at every bar line it crosses.

    Parameters
    ----------
    duration:
        Length of the note in steps.
    measure_left:
        Steps remaining in the measure where the note starts.
    measure_len:
        Length of a full measure in steps.

    Returns
    -------
    List[int]
        Consecutive pieces summing to ``duration``; every piece but the
        first starts on a bar line and none crosses one.
    """

    if duration < 1:
        raise ValueError(f"duration must be positive, got {duration}")
    pieces: List[int] = []
    while duration > measure_left:
        pieces.append(measure_left)
        duration -= measure_left
        measure_left = measure_len
    pieces.append(duration)
    return pieces
