"""Assemble melody and harmony into complete scores.

:func:`write_music` produces a LilyPond piano score with the melody on the
treble staff and the harmony on the bass staff; :func:`write_midi` produces
the same music as a MIDI timeline. Both draw the melody from a generator
seeded with ``config.seed``, so with a fixed seed the two outputs carry the
same notes.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Tuple

from mido import MidiFile

from .config import Config, resolve_seed, validate_config
from .harmony_generator import write_harmony
from .melody import total_steps, write_melody
from .midi_io import build_midi_file
from .sinks import EventSink, LilypondSink

__all__ = ["write_music", "write_midi", "generate"]

LILYPOND_VERSION = "2.24.1"

_SCORE_TEMPLATE = r"""
\version "{version}"
\score {{
\new PianoStaff <<
\new Staff {{
\tempo 4 = {tempo}
\clef treble
\key c \major
\time 4/4
{melody}
\fine
}}
\new Staff {{
\clef bass
\key c \major
\time 4/4
{harmony}
\fine
}}
>>
\layout {{}}
\midi {{}}
}}"""


def _melody_rng(config: Config, rng: Optional[random.Random]) -> random.Random:
    if rng is not None:
        return rng
    if config.seed is None:
        raise ValueError("config.seed must be set; call resolve_seed first")
    return random.Random(config.seed)


def write_music(config: Config, rng: Optional[random.Random] = None) -> str:
    """Return the LilyPond source of the full score.

    Parameters
    ----------
    config:
        Validated configuration. ``config.seed`` seeds the melody unless
        ``rng`` is given.
    rng:
        Optional generator to draw the melody from instead.
    """

    melody = LilypondSink()
    melody.write("{ ")
    count = write_melody(config, melody, _melody_rng(config, rng))
    melody.write("}")

    harmony = LilypondSink()
    write_harmony(config, harmony)

    logging.info("Wrote %d melody notes over %d steps", count, melody.position)
    return _SCORE_TEMPLATE.format(
        version=LILYPOND_VERSION,
        tempo=config.tempo,
        melody=melody.getvalue(),
        harmony=harmony.getvalue(),
    )


def write_midi(config: Config, rng: Optional[random.Random] = None) -> MidiFile:
    """Return the score as a MIDI file with a melody and a harmony track."""

    melody = EventSink(velocity=config.velocity)
    write_melody(config, melody, _melody_rng(config, rng))

    harmony = EventSink(velocity=config.velocity)
    write_harmony(config, harmony)

    return build_midi_file(
        [("Melody", melody), ("Harmony", harmony)],
        tempo=config.tempo,
        total_ticks=total_steps(config),
    )


def generate(config: Config) -> Tuple[Config, str, MidiFile]:
    """Validate ``config``, resolve its seed and render both formats.

    Returns
    -------
    Tuple[Config, str, MidiFile]
        The configuration actually used (with its seed filled in), the
        LilyPond source and the MIDI file.
    """

    validate_config(config)
    config = resolve_seed(config)
    logging.info("Generating with seed %d", config.seed)
    return config, write_music(config), write_midi(config)
