"""Shared fixtures: synthetic SoundFont/MIDI files and an in-process engine."""

import struct
from pathlib import Path

import mido
import numpy as np
import pytest

# ---------------------------------------------------------------------------
# SoundFont builder
# ---------------------------------------------------------------------------

SAMPLE_FRAMES = 256


def _chunk(tag: bytes, data: bytes) -> bytes:
    pad = b"\x00" if len(data) % 2 else b""
    return tag + struct.pack("<I", len(data)) + data + pad


def _list(list_type: bytes, *chunks: bytes) -> bytes:
    return _chunk(b"LIST", list_type + b"".join(chunks))


def _name(text: str) -> bytes:
    return text.encode("latin-1").ljust(20, b"\x00")


def build_soundfont(
    version: tuple[int, int] = (2, 1),
    omit: tuple[bytes, ...] = (),
    instrument_ref: int = 0,
    sample_end: int = SAMPLE_FRAMES,
    with_preset: bool = True,
) -> bytes:
    """Build a minimal SoundFont: one preset -> one instrument -> one sine sample."""
    t = np.arange(SAMPLE_FRAMES)
    pcm = (np.sin(2 * np.pi * t / 64) * 16000).astype("<i2").tobytes()
    pcm += b"\x00" * (46 * 2)  # 46 zero frames after each sample, as SoundFont requires

    info = _list(
        b"INFO",
        _chunk(b"ifil", struct.pack("<HH", *version)),
        _chunk(b"isng", b"EMU8000\x00"),
        _chunk(b"INAM", b"Test Bank\x00"),
    )
    sdta = _list(b"sdta", _chunk(b"smpl", pcm))

    phdr = b""
    if with_preset:
        phdr += struct.pack("<20sHHHIII", _name("Test Sine"), 0, 0, 0, 0, 0, 0)
    phdr += struct.pack("<20sHHHIII", _name("EOP"), 0, 0, 1 if with_preset else 0, 0, 0, 0)
    pbag = struct.pack("<HH", 0, 0) + struct.pack("<HH", 1, 0)
    pgen = struct.pack("<HH", 41, instrument_ref) + struct.pack("<HH", 0, 0)

    inst = struct.pack("<20sH", _name("Sine"), 0) + struct.pack("<20sH", _name("EOI"), 2)
    ibag = (
        struct.pack("<HH", 0, 0)      # global zone: attack time only
        + struct.pack("<HH", 1, 0)
        + struct.pack("<HH", 4, 0)
    )
    igen = (
        struct.pack("<HH", 34, (-1200) & 0xFFFF)    # attackVolEnv
        + struct.pack("<HH", 43, 0 | (127 << 8))    # keyRange 0-127
        + struct.pack("<HH", 54, 1)                 # sampleModes: loop
        + struct.pack("<HH", 53, 0)                 # sampleID 0
        + struct.pack("<HH", 0, 0)
    )
    mod_terminal = struct.pack("<HHhHH", 0, 0, 0, 0, 0)
    shdr = struct.pack(
        "<20sIIIIIBbHH", _name("sine"), 0, sample_end, 8, SAMPLE_FRAMES - 8,
        44100, 69, 0, 0, 1,
    ) + struct.pack("<20sIIIIIBbHH", _name("EOS"), 0, 0, 0, 0, 0, 0, 0, 0, 0)

    hydra = {
        b"phdr": phdr, b"pbag": pbag, b"pmod": mod_terminal, b"pgen": pgen,
        b"inst": inst, b"ibag": ibag, b"imod": mod_terminal, b"igen": igen,
        b"shdr": shdr,
    }
    pdta = _list(b"pdta", *(_chunk(tag, data) for tag, data in hydra.items() if tag not in omit))
    return _chunk(b"RIFF", b"sfbk" + info + sdta + pdta)


@pytest.fixture()
def soundfont_path(tmp_path) -> Path:
    path = tmp_path / "test.sf2"
    path.write_bytes(build_soundfont())
    return path


@pytest.fixture()
def make_soundfont(tmp_path):
    def _make(name: str = "custom.sf2", **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(build_soundfont(**kwargs))
        return path

    return _make


# ---------------------------------------------------------------------------
# MIDI builder
# ---------------------------------------------------------------------------

def write_midi(
    path: Path,
    notes: list[tuple[int, int, int]],
    tempo: int = 500000,
    ticks_per_beat: int = 480,
    tail_ticks: int = 0,
    program: int | None = None,
) -> Path:
    """Write a type 0 MIDI file.

    Args:
        notes: (note, start_tick, length_ticks) on channel 0, velocity 100.
        tempo: Microseconds per beat (500000 = 120 BPM).
        tail_ticks: Silence after the last event, before end-of-track.
    """
    timed = []
    for note, start, length in notes:
        timed.append((start, 1, mido.Message("note_on", note=note, velocity=100)))
        timed.append((start + length, 0, mido.Message("note_off", note=note, velocity=0)))
    timed.sort(key=lambda item: (item[0], item[1]))

    track = mido.MidiTrack()
    track.append(mido.MetaMessage("set_tempo", tempo=tempo, time=0))
    if program is not None:
        track.append(mido.Message("program_change", program=program, time=0))
    now = 0
    for tick, _order, msg in timed:
        track.append(msg.copy(time=tick - now))
        now = tick
    track.append(mido.MetaMessage("end_of_track", time=tail_ticks))

    midi = mido.MidiFile(type=0, ticks_per_beat=ticks_per_beat)
    midi.tracks.append(track)
    midi.save(str(path))
    return path


@pytest.fixture()
def make_midi(tmp_path):
    def _make(name: str = "song.mid", notes=((60, 0, 960),), **kwargs) -> Path:
        return write_midi(tmp_path / name, list(notes), **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------

class FakeEngine:
    """Deterministic sine-voice engine; effects attenuate the right channel."""

    name = "fake"

    def __init__(self, bank, config):
        self.bank = bank
        self.sample_rate = config.sample_rate
        self.effects = config.effects
        self.voices: dict[tuple[int, int], list[float]] = {}
        self.events = []
        self.closed = False

    def dispatch(self, event) -> None:
        self.events.append(event)
        key = (event.channel, event.data1)
        if event.kind == "note_on" and event.data2 > 0:
            freq = 440.0 * 2 ** ((event.data1 - 69) / 12.0)
            self.voices[key] = [freq, 0.2 * event.data2 / 127.0, 0.0]
        elif event.kind in ("note_on", "note_off"):
            self.voices.pop(key, None)

    def render(self, left, right) -> None:
        n = len(left)
        t = np.arange(n)
        out = np.zeros(n, dtype=np.float64)
        for voice in self.voices.values():
            freq, amp, phase = voice
            step = 2 * np.pi * freq / self.sample_rate
            out += amp * np.sin(phase + step * t)
            voice[2] = (phase + step * n) % (2 * np.pi)
        left[:] = out
        right[:] = out * 0.6 if self.effects else out

    def close(self) -> None:
        self.closed = True


class RecordingEngine(FakeEngine):
    """Records the frame position at which each event is dispatched."""

    def __init__(self, sample_rate: int = 1000):
        self.sample_rate = sample_rate
        self.effects = False
        self.voices = {}
        self.events = []
        self.closed = False
        self.frame = 0
        self.dispatched_at: list[int] = []
        self.block_sizes: list[int] = []

    def dispatch(self, event) -> None:
        self.dispatched_at.append(self.frame)
        super().dispatch(event)

    def render(self, left, right) -> None:
        self.block_sizes.append(len(left))
        left[:] = 1.0
        right[:] = -1.0
        self.frame += len(left)


@pytest.fixture()
def fake_engines():
    """Engine factory that remembers every engine it builds."""
    created = []

    def factory(bank, config):
        engine = FakeEngine(bank, config)
        created.append(engine)
        return engine

    factory.created = created
    return factory


@pytest.fixture()
def recording_engine():
    return RecordingEngine(sample_rate=1000)
