#!/usr/bin/env python3
"""Melody Walk library.

This package procedurally composes a short two-part piece: a melodic line
driven by a seeded random walk over a fixed four-chord harmonic cycle. The
same note stream can be rendered as LilyPond notation text or as a MIDI
event timeline. A typical workflow is to build a :class:`Config` (or pick a
preset), then call :func:`write_music` for the engraving source and
:func:`write_midi` for a playable file.

Underlying Algorithm
--------------------
The melody is a damped spring. Every sixteenth-note *step* the pitch
receives a random push of fixed size, a pull back toward the melody centre
and a little drag. A periodic *speed* curve decides how quickly notes are
closed, so passages of short notes alternate with passages of long ones.
Whenever a note closes, the rounded pitch of the walk is snapped onto the
nearest tone of the chord sounding at that moment. The harmony simply
unfolds a fixed 16-measure progression in one of several accompaniment
patterns.

Algorithm Pseudocode
--------------------
The following outlines the main loop executed by :func:`write_melody`::

    for step in range(total_steps):
        velocity = (velocity + spring(pitch)) * (1 - drag) +- nudge
        pitch += velocity
        progress += speed(step)
        if note_is_due(progress, stutter):
            sink.write_note(open_note)
            open_note = Note(snap_to_chord(round(pitch), step), 1)
        else:
            open_note.duration += 1

Given the same configuration and seed, the output is identical byte for
byte.
"""

__version__ = "0.1.0"

# ---------------------------------------------------------------
# Modification Summary
# ---------------------------------------------------------------
# * Output is written through a small sink interface so LilyPond text and
#   MIDI tracks are produced by the very same generation calls.
# * Harmony accompaniment gained octave, mirror, triples and quarter-chord
#   patterns next to the original quarter and centre-eighths styles.
# * A sawtooth speed curve is available as an alternative to the sine curve.
# * Seeds are always resolved and logged so any run can be reproduced.
# * Notes that span several measures are now split repeatedly instead of
#   once, which keeps long notes representable.
# ---------------------------------------------------------------

# The smallest note generated, as a fraction of a beat (sixteenth notes).
STEP = 4
# Beats per measure. Only 4/4 is supported.
MEASURE = 4
# Measures before the chord progression cycles.
CYCLE = 4
# Cycles in one complete pass of the harmony.
REPEAT = 4
# MIDI key of pitch ``0``, LilyPond's unmarked ``c`` (the C below middle C).
PITCH_OFFSET = 48

from .note_utils import (  # noqa: E402
    Pitch,
    Note,
    note_class,
    octave,
    nearest_chord_tone,
    pitch_name,
    to_midi_key,
)
from .durations import encode_duration, decode_duration, split_duration  # noqa: E402
from .config import (  # noqa: E402
    Config,
    HarmonyStyle,
    RhythmStyle,
    PRESETS,
    preset,
    validate_config,
    resolve_seed,
    load_config,
    save_config,
)
from .rhythm_engine import shaping_value, note_speed  # noqa: E402
from .harmony_generator import PROGRESSION, harmony_chord, write_harmony  # noqa: E402
from .sinks import OutputSink, LilypondSink, EventSink  # noqa: E402
from .melody import MelodyState, step, write_melody  # noqa: E402
from .midi_io import build_midi_file, save_midi  # noqa: E402
from .score import write_music, write_midi, generate  # noqa: E402


def main():
    """Run the command line interface."""
    from .cli import main as _main

    _main()
