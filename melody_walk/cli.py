"""Command line helpers for Melody Walk.

This module implements the console entry point for the project. The
``run_cli`` function parses command line arguments, resolves the effective
configuration and writes the generated score while :func:`main` configures
logging before delegating to it.

Settings are resolved in three layers: a named preset supplies every value,
an optional JSON file given with ``--config`` overrides some of them and
explicit flags override both. ``--save-config`` stores the resolved settings,
including the seed actually used, so a run can be repeated exactly.

Example
-------
Running ``python -m melody_walk song.ly --midi song.mid --preset 1.1 \
    --harmony mirror --seed 42`` writes a LilyPond score to ``song.ly`` and
the matching MIDI file to ``song.mid``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import (
    PRESETS,
    HarmonyStyle,
    RhythmStyle,
    load_config,
    preset,
    resolve_seed,
    save_config,
    validate_config,
)
from .midi_io import save_midi
from .score import write_midi, write_music

__all__ = ["build_parser", "run_cli", "main"]

# Flags copied onto the configuration when supplied, with their types.
_OVERRIDES = {
    "tempo": int,
    "min_len": float,
    "max_len": float,
    "harmony_base": int,
    "melody_base": int,
    "steady": float,
    "gravity": float,
    "drag": float,
    "nudge": float,
    "stutter": float,
    "repeat": int,
    "seed": int,
    "velocity": int,
}

_HELP = {
    "tempo": "The number of beats per minute.",
    "min_len": "The minimum length (in steps) of notes generated, ignoring stutter.",
    "max_len": "The maximum length (in steps) of notes generated, ignoring stutter.",
    "harmony_base": "The pitch of the harmony's lowest note; must be divisible by 12.",
    "melody_base": "The pitch of the melody's center.",
    "steady": "Scales how frequently the speed of notes changes, in measures.",
    "gravity": "How strongly the melody oscillates around its center.",
    "drag": "How strongly the melody's velocity declines.",
    "nudge": "The amount of random influence on the melody.",
    "stutter": "The amount of random influence on the speed of notes.",
    "repeat": "Number of times to repeat the accompaniment (16 measures each).",
    "seed": "Random seed for reproducible output.",
    "velocity": "MIDI note velocity (1-127).",
}


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser used by :func:`run_cli`."""

    parser = argparse.ArgumentParser(
        prog="melody-walk",
        description="Generate simple music as LilyPond (and optionally MIDI) files.",
    )
    parser.add_argument("output", nargs="?", help="Path to the LilyPond output.")
    parser.add_argument("--midi", metavar="PATH", help="Also write a MIDI file to PATH.")
    parser.add_argument(
        "--preset",
        default="1",
        help=f"Which default values to use ({', '.join(sorted(PRESETS))}).",
    )
    parser.add_argument("--config", metavar="FILE", help="JSON file of settings to apply over the preset.")
    parser.add_argument("--save-config", metavar="FILE", help="Write the resolved settings to FILE.")
    parser.add_argument(
        "--harmony",
        help=f"The harmony style ({', '.join(s.value for s in HarmonyStyle)}).",
    )
    parser.add_argument(
        "--rhythm",
        help=f"The rhythm curve ({', '.join(s.value for s in RhythmStyle)}).",
    )
    for name, kind in _OVERRIDES.items():
        parser.add_argument("--" + name.replace("_", "-"), dest=name, type=kind, help=_HELP[name])
    parser.add_argument("--list-harmonies", action="store_true", help="List harmony styles and exit.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every generated note.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` and write the requested files.

    Invalid settings and unwritable destinations are logged and terminate
    the process with exit status ``1``.
    """

    args = build_parser().parse_args(argv)

    if args.list_harmonies:
        print("\n".join(style.value for style in HarmonyStyle))
        return
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if not args.output:
        logging.error("An output path is required.")
        sys.exit(1)

    try:
        config = preset(args.preset)
        if args.config:
            config = load_config(args.config, config)
        overrides = {
            name: getattr(args, name)
            for name in _OVERRIDES
            if getattr(args, name) is not None
        }
        if args.harmony:
            overrides["harmony"] = HarmonyStyle.parse(args.harmony)
        if args.rhythm:
            overrides["rhythm"] = RhythmStyle.parse(args.rhythm)
        config = replace(config, **overrides)
        validate_config(config)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)
    except OSError as exc:
        logging.error("Could not read settings file: %s", exc)
        sys.exit(1)

    config = resolve_seed(config)
    logging.info("Seed: %d", config.seed)

    # Render everything before touching the filesystem so a failed run
    # leaves no partial output behind.
    try:
        text = write_music(config)
        midi = write_midi(config) if args.midi else None
    except ValueError as exc:
        # A walk pushed far outside the keyboard cannot be written as MIDI.
        logging.error(str(exc))
        sys.exit(1)

    try:
        output = Path(args.output).expanduser()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        logging.info("LilyPond file saved to %s", output)
        if midi is not None:
            save_midi(midi, args.midi)
        if args.save_config:
            save_config(config, args.save_config)
    except OSError as exc:
        # Permission issues or full disks surface as ``OSError``; exiting
        # with a non-zero code signals that generation did not succeed.
        logging.error("Could not write output: %s", exc)
        sys.exit(1)
    logging.info("Generation complete.")


def main(argv: Optional[List[str]] = None) -> None:
    """Configure logging and run the command line interface."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(argv)
