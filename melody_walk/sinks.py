"""Output sinks receiving the generated notes.

Melody and harmony generation never format anything themselves. They call
the four operations of :class:`OutputSink` and the concrete sink decides how
the music is stored:

* :class:`LilypondSink` accumulates LilyPond source, inserting ties and bar
  checks wherever a note crosses a bar line.
* :class:`EventSink` accumulates a ``mido.MidiTrack`` of delta-timed key
  events. A key release is written as a ``note_on`` with velocity ``0``,
  the running-status friendly form most sequencers emit.

Both sinks keep ``position``, the number of sounding steps written so far,
so callers can check that every part ends on the same bar line.
"""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence

from mido import Message, MetaMessage, MidiTrack

from . import CYCLE, MEASURE, STEP
from .durations import encode_duration, split_duration
from .note_utils import Note, Pitch, pitch_name, to_midi_key

__all__ = ["OutputSink", "LilypondSink", "EventSink"]

MEASURE_STEPS = STEP * MEASURE


class OutputSink(Protocol):
    """Operations shared by every output format."""

    position: int

    def write_note(self, note: Note) -> None:
        """Append a single sounding note."""

    def write_chord(self, pitches: Sequence[Pitch], duration: int) -> None:
        """Append several pitches struck together for ``duration`` steps."""

    def write_rest(self, duration: int) -> None:
        """Append ``duration`` steps of silence."""

    def repeat(self, times: int, body: Callable[["OutputSink"], None]) -> None:
        """Play whatever ``body`` writes ``times`` times in a row."""


class LilypondSink:
    """Render notes as LilyPond source text in absolute pitch mode."""

    def __init__(self) -> None:
        self._parts: List[str] = []
        self.position = 0

    @property
    def measure_left(self) -> int:
        """Steps remaining before the next bar line."""
        return MEASURE_STEPS - self.position % MEASURE_STEPS

    def getvalue(self) -> str:
        """Return the text written so far."""
        return "".join(self._parts)

    def write(self, text: str) -> None:
        """Append raw LilyPond ``text``."""
        self._parts.append(text)

    def _advance(self, steps: int) -> None:
        self.position += steps
        if self.position % MEASURE_STEPS == 0:
            self._parts.append("| ")
            if self.position // MEASURE_STEPS % CYCLE == 0:
                self._parts.append("\n")

    def _write_tied(self, head: str, duration: int) -> None:
        pieces = split_duration(duration, self.measure_left)
        for index, piece in enumerate(pieces):
            lengths = encode_duration(piece)
            tokens = [head + length for length in lengths]
            text = "~ ".join(tokens)
            if index < len(pieces) - 1:
                text += "~"
            self._parts.append(text + " ")
            self._advance(piece)

    def write_note(self, note: Note) -> None:
        self._write_tied(pitch_name(note.pitch), note.duration)

    def write_chord(self, pitches: Sequence[Pitch], duration: int) -> None:
        head = "<" + " ".join(pitch_name(p) for p in pitches) + ">"
        self._write_tied(head, duration)

    def write_rest(self, duration: int) -> None:
        # Rests are never tied; every component is a rest of its own.
        for piece in split_duration(duration, self.measure_left):
            self._parts.append(" ".join("r" + length for length in encode_duration(piece)) + " ")
            self._advance(piece)

    def repeat(self, times: int, body: Callable[[OutputSink], None]) -> None:
        if times < 1:
            raise ValueError("times must be positive")
        start = self.position
        self._parts.append(f"\\repeat unfold {times} {{\n")
        body(self)
        self._parts.append("}")
        self.position += (self.position - start) * (times - 1)


class EventSink:
    """Collect delta-timed MIDI key events for one part.

    Parameters
    ----------
    velocity:
        Note-on velocity for every key press, ``1-127``.
    channel:
        Zero-based MIDI channel of every event.

    Time is measured in steps, so the resulting track expects a resolution
    of ``STEP`` ticks per beat.
    """

    def __init__(self, velocity: int = 80, channel: int = 0) -> None:
        if not 1 <= velocity <= 127:
            raise ValueError("velocity must be between 1 and 127")
        self.velocity = velocity
        self.channel = channel
        self.track = MidiTrack()
        self.position = 0
        # Time owed to the next event, accumulated by rests.
        self._pending = 0
        self._closed = False

    def _emit(self, key: int, velocity: int, delta: int) -> None:
        if self._closed:
            raise RuntimeError("cannot write to a closed EventSink")
        self.track.append(
            Message(
                "note_on",
                channel=self.channel,
                note=key,
                velocity=velocity,
                time=delta,
            )
        )

    def _press(self, keys: Sequence[int], duration: int) -> None:
        for index, key in enumerate(keys):
            self._emit(key, self.velocity, self._pending if index == 0 else 0)
        self._pending = 0
        for index, key in enumerate(keys):
            self._emit(key, 0, duration if index == 0 else 0)
        self.position += duration

    def write_note(self, note: Note) -> None:
        self._press([to_midi_key(note.pitch)], note.duration)

    def write_chord(self, pitches: Sequence[Pitch], duration: int) -> None:
        self._press([to_midi_key(p) for p in pitches], duration)

    def write_rest(self, duration: int) -> None:
        self._pending += duration
        self.position += duration

    def repeat(self, times: int, body: Callable[[OutputSink], None]) -> None:
        if times < 1:
            raise ValueError("times must be positive")
        for _ in range(times):
            body(self)

    def close(self) -> MidiTrack:
        """Terminate the track after any trailing rest and return it."""

        if not self._closed:
            self.track.append(MetaMessage("end_of_track", time=self._pending))
            self._pending = 0
            self._closed = True
        return self.track
