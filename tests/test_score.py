"""Tests for assembling complete scores in both output formats."""

import logging
import random
import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from melody_walk import config as config_mod  # noqa: E402  # isort:skip
from melody_walk import score  # noqa: E402  # isort:skip
from melody_walk.config import HarmonyStyle, preset  # noqa: E402  # isort:skip

SEEDED = replace(preset("1"), seed=42)


def _messages(mid):
    return [[str(m) for m in track] for track in mid.tracks]


def test_write_music_headers():
    """The document declares its version, tempo, clefs and meter."""
    text = score.write_music(SEEDED)
    assert '\\version "2.24.1"' in text
    assert "\\tempo 4 = 80" in text
    assert "\\clef treble" in text
    assert "\\clef bass" in text
    assert text.count("\\time 4/4") == 2
    assert text.count("\\fine") == 2
    assert "\\new PianoStaff <<" in text
    assert "\\repeat unfold 1 {" in text
    assert "\\midi {}" in text


def test_write_music_uses_configured_tempo_and_style():
    """Tempo and harmony style flow into the rendered document."""
    cfg = replace(SEEDED, tempo=132, harmony=HarmonyStyle.QUARTER_CHORDS, repeat=2)
    text = score.write_music(cfg)
    assert "\\tempo 4 = 132" in text
    assert "\\repeat unfold 2 {" in text
    assert "<c, e, g,>4" in text


def test_write_music_melody_is_braced():
    """The melody sits in its own brace group on the treble staff."""
    text = score.write_music(SEEDED)
    treble = text.split("\\clef treble")[1].split("\\fine")[0]
    body = treble.split("\\time 4/4\n")[1].strip()
    assert body.startswith("{ ")
    assert body.endswith("}")


def test_write_music_is_deterministic():
    """A fixed seed reproduces the document exactly."""
    assert score.write_music(SEEDED) == score.write_music(SEEDED)
    assert score.write_music(SEEDED) != score.write_music(replace(SEEDED, seed=43))


def test_write_music_accepts_explicit_rng():
    """An explicit generator replaces the configured seed."""
    unseeded = replace(SEEDED, seed=None)
    assert score.write_music(unseeded, random.Random(42)) == score.write_music(SEEDED)


def test_write_midi_tracks():
    """The MIDI file holds the conductor, melody and harmony tracks."""
    mid = score.write_midi(SEEDED)
    assert mid.ticks_per_beat == 4
    assert [track[0].name for track in mid.tracks[1:]] == ["Melody", "Harmony"]
    for track in mid.tracks:
        assert sum(m.time for m in track) == 256


def test_write_midi_is_deterministic():
    """A fixed seed reproduces every MIDI message."""
    assert _messages(score.write_midi(SEEDED)) == _messages(score.write_midi(SEEDED))


def test_write_midi_uses_velocity():
    """Key presses use the configured velocity."""
    mid = score.write_midi(replace(SEEDED, velocity=100))
    presses = [m for m in mid.tracks[2] if m.type == "note_on" and m.velocity]
    assert presses
    assert all(m.velocity == 100 for m in presses)


@pytest.mark.parametrize("func", [score.write_music, score.write_midi])
def test_missing_seed_raises(func):
    """Rendering without a seed or generator is an error."""
    with pytest.raises(ValueError):
        func(preset("1"))


def test_generate_resolves_seed(monkeypatch, caplog):
    """``generate`` fills in a seed and returns the configuration used."""
    monkeypatch.setattr(config_mod.secrets, "randbits", lambda bits: 7)
    with caplog.at_level(logging.INFO):
        used, text, mid = score.generate(preset("1.1"))
    assert used.seed == 7
    assert "seed 7" in caplog.text
    assert text == score.write_music(used)
    assert _messages(mid) == _messages(score.write_midi(used))


def test_generate_rejects_invalid_config():
    """Invalid settings are refused before anything is rendered."""
    with pytest.raises(ValueError, match="multiples of 12"):
        score.generate(replace(SEEDED, harmony_base=7))
