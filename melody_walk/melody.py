"""Random-walk melody simulation.

The melody is a particle on a spring. Its continuous pitch is pulled toward
``melody_base`` by ``gravity``, loses a ``drag`` fraction of its velocity
each step and is pushed up or down by ``nudge`` at random. Independently a
progress accumulator grows by the current note speed (see
:mod:`melody_walk.rhythm_engine`); once it passes ``1`` the open note is
closed and a new one starts at the walk's rounded pitch, snapped to the
current chord.

``stutter`` perturbs that cadence. Every step draws two uniforms: the first
may close a note before it is due, the second may hold a note that is due.
Both are always drawn so the random stream does not depend on the progress
value.

New notes that begin on the last sixteenth of a beat keep their raw pitch
instead of being snapped to the chord.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional

from . import CYCLE, MEASURE, REPEAT, STEP
from .config import Config
from .harmony_generator import harmony_chord
from .note_utils import Note, nearest_chord_tone
from .rhythm_engine import note_speed
from .sinks import OutputSink

__all__ = ["MelodyState", "step", "total_steps", "write_melody"]


@dataclass
class MelodyState:
    """Mutable state of one melody simulation."""

    pitch: float
    velocity: float = 0.0
    progress: float = 0.0
    # Steps simulated so far.
    time: int = 0
    # Step at which the open note started.
    last_note: int = 0
    note: Note = field(default_factory=lambda: Note(0))

    @classmethod
    def initial(cls, config: Config) -> "MelodyState":
        """Return the state at rest on the melody centre."""
        return cls(pitch=float(config.melody_base), note=Note(config.melody_base))


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def step(state: MelodyState, config: Config, rng: random.Random) -> Optional[Note]:
    """Advance ``state`` by one step.

    Returns
    -------
    Optional[Note]
        The note closed during this step, or ``None`` when the open note
        was extended instead.
    """

    nudge = config.nudge if rng.random() < 0.5 else -config.nudge
    gravity = -(state.pitch - config.melody_base) * config.gravity
    state.velocity = (state.velocity + gravity) * (1.0 - config.drag) + nudge
    state.pitch += state.velocity

    state.progress += note_speed(config, state.time)
    state.time += 1

    early = rng.random()
    hold = rng.random()
    if (state.progress > 1.0 or early < config.stutter) and hold > config.stutter:
        closed = state.note
        state.progress -= 1.0
        state.last_note = state.time
        pitch = _round_half_away(state.pitch)
        if state.last_note % STEP != STEP - 1:
            pitch = nearest_chord_tone(pitch, harmony_chord(state.time), rng)
        state.note = Note(pitch)
        return closed

    state.note.duration += 1
    return None


def total_steps(config: Config) -> int:
    """Return the length of the piece in steps."""

    return config.repeat * REPEAT * CYCLE * MEASURE * STEP


def write_melody(config: Config, sink: OutputSink, rng: random.Random) -> int:
    """Simulate the whole melody and write it to ``sink``.

    The note still open when time runs out is dropped and replaced by a rest
    reaching the final bar line, so the melody is exactly as long as the
    harmony.

    Returns
    -------
    int
        Number of notes written.
    """

    state = MelodyState.initial(config)
    total = total_steps(config)
    count = 0
    for _ in range(total):
        note = step(state, config, rng)
        if note is not None:
            logging.debug("t=%d pitch=%d duration=%d", state.time, note.pitch, note.duration)
            sink.write_note(note)
            count += 1
    remaining = total - state.last_note
    if remaining > 0:
        sink.write_rest(remaining)
    return count
