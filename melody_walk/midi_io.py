"""Utilities for assembling and writing MIDI files.

Modification summary
--------------------
* ``build_midi_file`` no longer generates notes itself. Each part arrives as
  an :class:`~melody_walk.sinks.EventSink` already filled by the melody or
  harmony generator, so this module only adds the conductor track and the
  file framing.
* The resolution is fixed at ``STEP`` ticks per beat, making one tick equal
  to one generator step and removing any rounding from the timeline.
* ``save_midi`` creates the destination directory automatically so callers
  can pass a path in a new folder without preparing it.

The file is written as type 1: track 0 carries only the time signature,
tempo and an end marker placed at the full length of the piece; every
following track holds one part.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

import mido
from mido import MetaMessage, MidiFile, MidiTrack

from . import MEASURE, STEP
from .sinks import EventSink

__all__ = ["build_midi_file", "save_midi"]


def build_midi_file(
    parts: Sequence[Tuple[str, EventSink]],
    tempo: int,
    total_ticks: int,
) -> MidiFile:
    """Combine ``parts`` into a type 1 ``MidiFile``.

    Parameters
    ----------
    parts:
        ``(name, sink)`` pairs in track order. Each sink is closed so its
        track ends with an ``end_of_track`` marker after any trailing rest.
    tempo:
        Beats per minute, stored as microseconds per beat.
    total_ticks:
        Length of the piece; the conductor track ends here.

    Returns
    -------
    MidiFile
        In-memory file ready to be saved or inspected.

    Raises
    ------
    ValueError
        If ``tempo`` is not positive.
    """

    if tempo <= 0:
        raise ValueError("tempo must be a positive integer")

    mid = MidiFile(type=1, ticks_per_beat=STEP)
    conductor = MidiTrack()
    conductor.append(
        MetaMessage("time_signature", numerator=MEASURE, denominator=4, time=0)
    )
    conductor.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(tempo), time=0))
    conductor.append(MetaMessage("end_of_track", time=total_ticks))
    mid.tracks.append(conductor)

    for name, sink in parts:
        track = MidiTrack()
        track.append(MetaMessage("track_name", name=name, time=0))
        track.extend(sink.close())
        mid.tracks.append(track)
    return mid


def save_midi(mid: MidiFile, output_file: Union[str, Path]) -> None:
    """Write ``mid`` to ``output_file``.

    Raises
    ------
    OSError
        If the file cannot be written.
    """

    path = Path(output_file).expanduser()
    # Ensure the destination directory exists so ``mid.save`` succeeds even
    # when the caller specifies a path in a new folder.
    path.parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(path))
    logging.info("MIDI file saved to %s", path)
