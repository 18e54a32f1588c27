"""Fixed chord progression and accompaniment patterns.

The harmony is a 16-measure progression, four cycles of four measures,
each measure holding one four-note chord. :func:`write_harmony` unfolds the
table once per requested repeat and spells every chord with the pattern
selected by :class:`~melody_walk.config.HarmonyStyle`. All patterns fill
exactly one 4/4 measure and involve no randomness.

The melody does not follow the full table. It quantizes against
:func:`harmony_chord`, a simplified four-tone set per measure of the cycle
that agrees with the progression on its essential tones.

Example
-------
>>> harmony_events(HarmonyStyle.QUARTER, [0, 4, 7, 11], -12)[:2]
[([-12], 4), ([-8], 4)]
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from . import CYCLE, MEASURE, STEP
from .config import Config, HarmonyStyle
from .note_utils import Note, Pitch
from .sinks import OutputSink

__all__ = [
    "PROGRESSION",
    "harmony_chord",
    "harmony_events",
    "harmony_range",
    "write_harmony",
]

PROGRESSION: Tuple[Tuple[Tuple[int, ...], ...], ...] = (
    (
        (0, 4, 7, 11),  # C E G B
        (12, 9, 5, 2),  # C' A F D
        (0, 4, 7, 12),  # C E G C'
        (14, 11, 7, 2),  # D' B G D
    ),
    (
        (0, 4, 7, 11),  # C E G B
        (12, 9, 5, 2),  # C' A F D
        (0, 4, 7, 12),  # C E G C'
        (14, 11, 7, 2),  # D' B G D
    ),
    (
        (4, 7, 12, 16),  # E G C' E'
        (17, 14, 12, 9),  # F' D' C' A
        (7, 11, 12, 16),  # G B C' E'
        (19, 17, 14, 11),  # G' F' D' B
    ),
    (
        (12, 7, 4, 0),  # C' G E C
        (2, 5, 9, 12),  # D F A C'
        (11, 7, 4, 0),  # B G E C
        (-1, 2, 7, 5),  # B, D G F
    ),
)

# Tones the melody snaps to, by measure within the cycle.
_MELODY_CHORDS: Tuple[Tuple[Pitch, ...], ...] = (
    (0, 4, 7, 11),  # C E G B
    (0, 2, 5, 9),  # C D F A
    (0, 4, 7, 11),  # C E G B
    (2, 5, 7, 11),  # D F G B
)

SIXTEENTH = 1
EIGHTH = STEP // 2
QUARTER = STEP

# Three-note subsets of the chord for ``quarter-chords``, one per beat.
_CHORD_SUBSETS = ((0, 1, 2), (1, 2, 3), (0, 2, 3), (0, 1, 3))

# (tone index, duration) pairs for ``triples``: four long-short groups of
# three steps followed by two eighths.
_TRIPLES = (
    (0, EIGHTH),
    (1, SIXTEENTH),
    (2, EIGHTH),
    (3, SIXTEENTH),
    (1, EIGHTH),
    (2, SIXTEENTH),
    (3, EIGHTH),
    (2, SIXTEENTH),
    (1, EIGHTH),
    (0, EIGHTH),
)

Event = Tuple[List[Pitch], int]


def harmony_chord(time: int) -> Tuple[Pitch, ...]:
    """Return the tones the melody may land on at step ``time``."""

    return _MELODY_CHORDS[(time // STEP // MEASURE) % CYCLE]


def harmony_events(style: HarmonyStyle, chord: Sequence[int], base: int) -> List[Event]:
    """Spell one measure of ``chord`` in ``style``.

    Parameters
    ----------
    style:
        Accompaniment pattern.
    chord:
        Four pitches relative to the harmony's base.
    base:
        Offset added to every pitch, a multiple of 12.

    Returns
    -------
    List[Tuple[List[int], int]]
        ``(pitches, duration)`` pairs. A single pitch is a note, several
        pitches are struck together as a chord.
    """

    p0, p1, p2, p3 = (p + base for p in chord)
    tones = (p0, p1, p2, p3)
    if style is HarmonyStyle.QUARTER:
        return [([p], QUARTER) for p in tones]
    if style is HarmonyStyle.UP_OCTAVES:
        return [([q], EIGHTH) for p in tones for q in (p, p + 12)]
    if style is HarmonyStyle.DOWN_OCTAVES:
        return [([q], EIGHTH) for p in tones for q in (p + 12, p)]
    if style is HarmonyStyle.CENTER_EIGHTHS:
        return [
            ([p0], QUARTER),
            ([p1], EIGHTH),
            ([p2], EIGHTH),
            ([p1], EIGHTH),
            ([p2], EIGHTH),
            ([p3], QUARTER),
        ]
    if style is HarmonyStyle.MIRROR:
        # Up through the chord, then back down it an octave lower.
        lower = [p - 12 for p in reversed(tones)]
        return [([p], EIGHTH) for p in list(tones) + lower]
    if style is HarmonyStyle.TRIPLES:
        return [([tones[i]], length) for i, length in _TRIPLES]
    if style is HarmonyStyle.QUARTER_CHORDS:
        return [([tones[i] for i in subset], QUARTER) for subset in _CHORD_SUBSETS]
    raise ValueError(f"Unsupported harmony style: {style!r}")


def harmony_range(style: HarmonyStyle) -> Tuple[Pitch, Pitch]:
    """Return the lowest and highest pitch ``style`` plays at base ``0``."""

    pitches = [
        p
        for cycle in PROGRESSION
        for chord in cycle
        for group, _ in harmony_events(style, chord, 0)
        for p in group
    ]
    return min(pitches), max(pitches)


def _write_cycles(config: Config, sink: OutputSink) -> None:
    for cycle in PROGRESSION:
        for chord in cycle:
            for pitches, duration in harmony_events(config.harmony, chord, config.harmony_base):
                if len(pitches) == 1:
                    sink.write_note(Note(pitches[0], duration))
                else:
                    sink.write_chord(pitches, duration)


def write_harmony(config: Config, sink: OutputSink) -> None:
    """Write the whole accompaniment, ``config.repeat`` passes long."""

    sink.repeat(config.repeat, lambda out: _write_cycles(config, out))
