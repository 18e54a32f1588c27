"""Generation settings, presets and their validation.

A :class:`Config` is immutable and shared by every part of a run. The
command line layer starts from a named preset, applies an optional JSON
settings file and finally the explicit flags, then calls
:func:`validate_config` before anything is generated.

Example
-------
>>> from dataclasses import replace
>>> cfg = replace(preset("1"), harmony=HarmonyStyle.parse("mirror"))
>>> validate_config(cfg)
>>> cfg.harmony.value
'mirror'
"""

from __future__ import annotations

import json
import logging
import math
import secrets
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from . import PITCH_OFFSET

__all__ = [
    "Config",
    "HarmonyStyle",
    "RhythmStyle",
    "PRESETS",
    "preset",
    "validate_config",
    "resolve_seed",
    "load_config",
    "save_config",
]


class _NamedStyle(Enum):
    @classmethod
    def parse(cls, name: str):
        """Return the member spelled ``name`` on the command line."""
        for member in cls:
            if member.value == name.strip().lower():
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown {cls.__name__} {name!r}; expected one of {choices}")


class HarmonyStyle(_NamedStyle):
    """Accompaniment pattern used to spell each chord of the progression."""

    QUARTER = "quarter"
    UP_OCTAVES = "up-octaves"
    DOWN_OCTAVES = "down-octaves"
    CENTER_EIGHTHS = "center-8ths"
    MIRROR = "mirror"
    TRIPLES = "triples"
    QUARTER_CHORDS = "quarter-chords"


class RhythmStyle(_NamedStyle):
    """Shape of the periodic curve modulating note lengths."""

    SINE = "sine"
    SAWTOOTH = "sawtooth"


@dataclass(frozen=True)
class Config:
    """Every knob of a generation run."""

    harmony: HarmonyStyle = HarmonyStyle.QUARTER
    rhythm: RhythmStyle = RhythmStyle.SINE
    # Beats per minute.
    tempo: int = 80
    # Shortest and longest average note lengths in steps, ignoring stutter.
    min_len: float = 1.0
    max_len: float = 4.0
    # Pitch of the harmony's lowest octave; must be a multiple of 12.
    harmony_base: int = -12
    # Pitch the melody oscillates around.
    melody_base: int = 12
    # Period of the speed curve, in measures.
    steady: float = math.pi
    # Spring strength pulling the melody to its centre.
    gravity: float = 0.15
    # Fraction of the melody's velocity lost every step.
    drag: float = 0.22
    # Size of the random push applied every step.
    nudge: float = 1.5
    # Probability of cutting a note short or holding it past its time.
    stutter: float = 0.05
    # Passes through the 16-measure harmony.
    repeat: int = 1
    seed: Optional[int] = None
    # MIDI note-on velocity.
    velocity: int = 80


PRESETS: Dict[str, Config] = {
    "1": Config(),
    "1.1": Config(harmony=HarmonyStyle.CENTER_EIGHTHS, min_len=1.15, max_len=3.5),
}


def preset(name: str) -> Config:
    """Return the preset called ``name``.

    Raises
    ------
    ValueError
        If no preset has that name.
    """

    try:
        return PRESETS[name]
    except KeyError:
        choices = ", ".join(sorted(PRESETS))
        raise ValueError(f"Unknown preset {name!r}; expected one of {choices}") from None


def _fail(message: str) -> None:
    logging.error(message)
    raise ValueError(message)


def validate_config(config: Config) -> None:
    """Raise ``ValueError`` if ``config`` cannot drive a generation run.

    The checks mirror what the generator silently assumes: the harmony sits
    on a C so it may only move by whole octaves, the speed curve needs a
    positive period and a positive shortest length, probabilities lie in
    ``[0, 1]`` and the velocity is a sounding MIDI value. The harmony and
    the melody centre must also map to MIDI keys.
    """

    if config.harmony_base % 12 != 0:
        _fail("Harmony can only be adjusted by multiples of 12")
    if config.tempo <= 0:
        _fail("Tempo must be a positive integer.")
    if config.repeat <= 0:
        _fail("Repeat count must be a positive integer.")
    if config.min_len <= 0:
        _fail("Minimum note length must be positive.")
    if config.max_len < config.min_len:
        _fail("Maximum note length cannot be shorter than the minimum.")
    if config.steady <= 0:
        _fail("Steadiness must be positive.")
    if not 0.0 <= config.stutter <= 1.0:
        _fail("Stutter must be between 0 and 1.")
    if not 0.0 <= config.drag <= 1.0:
        _fail("Drag must be between 0 and 1.")
    if not 1 <= config.velocity <= 127:
        _fail("Velocity must be between 1 and 127.")
    if config.seed is not None and not 0 <= config.seed < 2**64:
        _fail("Seed must fit in an unsigned 64-bit integer.")

    # Every harmony pitch and the melody centre must be playable as MIDI.
    from .harmony_generator import harmony_range

    low, high = harmony_range(config.harmony)
    lowest = config.harmony_base + low + PITCH_OFFSET
    highest = config.harmony_base + high + PITCH_OFFSET
    if lowest < 0 or highest > 127:
        _fail(
            f"Harmony base {config.harmony_base} puts the {config.harmony.value} "
            "harmony outside MIDI keys 0-127"
        )
    if not 0 <= config.melody_base + PITCH_OFFSET <= 127:
        _fail(f"Melody base {config.melody_base} lies outside MIDI keys 0-127")


def resolve_seed(config: Config) -> Config:
    """Return ``config`` with a seed, drawing a fresh one when unset."""

    if config.seed is not None:
        return config
    seed = secrets.randbits(64)
    logging.info("Using random seed %d", seed)
    return replace(config, seed=seed)


_STYLE_FIELDS = {"harmony": HarmonyStyle, "rhythm": RhythmStyle}


def _coerce(name: str, value, current):
    if name in _STYLE_FIELDS:
        return _STYLE_FIELDS[name].parse(str(value))
    if name == "seed" and value is None:
        return None
    # JSON booleans are ints in Python but never a valid setting.
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid value for {name}: {value!r}")
    if name == "seed":
        if not isinstance(value, int):
            raise ValueError(f"seed must be an integer, got {value!r}")
        return value
    if isinstance(current, int):
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{name} must be an integer, got {value!r}")
        return int(value)
    return float(value)


def load_config(path: Union[str, Path], base: Optional[Config] = None) -> Config:
    """Apply the JSON overrides stored at ``path`` on top of ``base``.

    Parameters
    ----------
    path:
        File containing a JSON object whose keys are :class:`Config` field
        names. Style fields use their command line spelling.
    base:
        Configuration supplying every field missing from the file. Defaults
        to preset ``"1"``.

    Raises
    ------
    ValueError
        If the file is not a JSON object, names an unknown field or holds a
        value of the wrong type.
    OSError
        If the file cannot be read.
    """

    base = base or preset("1")
    with open(Path(path).expanduser(), "r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Could not parse settings file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")

    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {', '.join(unknown)}")
    overrides = {
        name: _coerce(name, value, getattr(base, name)) for name, value in data.items()
    }
    logging.debug("Loaded %d setting(s) from %s", len(overrides), path)
    return replace(base, **overrides)


def save_config(config: Config, path: Union[str, Path]) -> None:
    """Write ``config`` to ``path`` in the format read by :func:`load_config`."""

    data = asdict(config)
    for name in _STYLE_FIELDS:
        data[name] = getattr(config, name).value
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2)
    logging.info("Settings saved to %s", target)
