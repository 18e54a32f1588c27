"""Pitch helpers shared by the melody, harmony and output modules.

Pitches are plain integers counting semitones from a fixed reference
(``0`` is the C below middle C, MIDI key ``48``). Octave arithmetic
uses floor division so negative pitches decompose cleanly: ``-1`` is a B in
octave ``-1`` rather than a note class of ``-1``.

Example
-------
>>> from melody_walk.note_utils import pitch_name, to_midi_key
>>> pitch_name(-12)
'c,'
>>> to_midi_key(7)
55
"""

# Modification Summary
# ---------------------
# * ``nearest_chord_tone`` takes the random generator explicitly so tie
#   breaks are reproducible from the run's seed.
# * ``to_midi_key`` raises ``ValueError`` for keys outside ``0-127`` instead
#   of letting the MIDI layer fail later with a less helpful message.

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Sequence

from . import PITCH_OFFSET

__all__ = [
    "Pitch",
    "Note",
    "note_class",
    "octave",
    "nearest_chord_tone",
    "pitch_name",
    "to_midi_key",
]

Pitch = int

# LilyPond (Dutch) spellings, correct for D major through A-flat major and
# F-sharp minor through C minor.
NOTE_NAMES = (
    "c",
    "cis",
    "d",
    "ees",
    "e",
    "f",
    "fis",
    "g",
    "aes",
    "a",
    "bes",
    "b",
)


@dataclass
class Note:
    """A pitch held for ``duration`` sixteenth-note steps."""

    pitch: Pitch
    duration: int = 1


def note_class(pitch: Pitch) -> int:
    """Return ``pitch`` reduced to ``0-11``."""

    return pitch % 12


def octave(pitch: Pitch) -> int:
    """Return the octave of ``pitch`` (negative below the reference C)."""

    return pitch // 12


def nearest_chord_tone(
    pitch: Pitch, chord_tones: Sequence[Pitch], rng: random.Random
) -> Pitch:
    """Move ``pitch`` onto the closest tone of ``chord_tones``.

    Parameters
    ----------
    pitch:
        Pitch to quantize.
    chord_tones:
        Candidate pitches. Only their note classes matter.
    rng:
        Generator used to break ties between equally close candidates.

    Returns
    -------
    Pitch
        A pitch sharing a note class with one of ``chord_tones`` and lying
        no more than a tritone away from ``pitch``.

    Notes
    -----
    Distances are measured around the octave circle. When two candidates
    are equally close a coin flip decides whether the later one replaces the
    earlier. An exact match ends the search immediately without consuming
    randomness.
    """

    assert chord_tones, "chord_tones must not be empty"
    current = note_class(pitch)
    best = 12
    nearest = current
    for tone in chord_tones:
        candidate = note_class(tone)
        diff = abs(candidate - current)
        if diff > 6:
            diff = 12 - diff
        if diff == 0:
            nearest = candidate
            break
        if diff < best:
            nearest = candidate
            best = diff
        elif diff == best and rng.random() < 0.5:
            nearest = candidate

    # Shift into (-6, 6] so the result stays in the closest octave.
    shift = nearest - current
    if shift > 6:
        shift -= 12
    elif shift <= -6:
        shift += 12
    return pitch + shift


def pitch_name(pitch: Pitch) -> str:
    """Return the LilyPond absolute-mode name of ``pitch``.

    Octaves above the reference are marked with ``'`` and octaves below with
    ``,`` so ``0`` renders as ``c``, ``12`` as ``c'`` and ``-13`` as
    ``b,,``.
    """

    oct_ = octave(pitch)
    mark = "'" if oct_ >= 0 else ","
    return NOTE_NAMES[note_class(pitch)] + mark * abs(oct_)


def to_midi_key(pitch: Pitch) -> int:
    """Convert ``pitch`` to a MIDI key number.

    Raises
    ------
    ValueError
        If the resulting key lies outside ``0-127``.
    """

    key = pitch + PITCH_OFFSET
    if not 0 <= key <= 127:
        logging.error("Pitch %d maps outside the MIDI range: %d", pitch, key)
        raise ValueError(f"MIDI key {key} out of range 0-127 for pitch {pitch}")
    return key
