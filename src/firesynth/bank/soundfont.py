"""SoundFont bank loader — structural parser for SF2/SF3 (RIFF ``sfbk``) files.

The loader decodes the parts of the file the renderer and the front ends
need, without pulling sample data into memory:

- INFO list: format version, bank name, target sound engine
- sdta list: size of the 16-bit sample pool (``smpl``)
- pdta "hydra": presets, instruments and sample headers, with every zone's
  generators (key/velocity ranges, envelopes, filter, LFOs, ...)

Anything structurally wrong is reported as ``ResourceError(ResourceKind.BANK)``.
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from firesynth.errors import ResourceError, ResourceKind

logger = logging.getLogger(__name__)

SUPPORTED_MAJOR_VERSIONS = (2, 3)

# Generator operators, SoundFont 2.04 section 8.1.2.
GENERATOR_NAMES: dict[int, str] = {
    0: "startAddrsOffset",
    1: "endAddrsOffset",
    2: "startloopAddrsOffset",
    3: "endloopAddrsOffset",
    4: "startAddrsCoarseOffset",
    5: "modLfoToPitch",
    6: "vibLfoToPitch",
    7: "modEnvToPitch",
    8: "initialFilterFc",
    9: "initialFilterQ",
    10: "modLfoToFilterFc",
    11: "modEnvToFilterFc",
    12: "endAddrsCoarseOffset",
    13: "modLfoToVolume",
    15: "chorusEffectsSend",
    16: "reverbEffectsSend",
    17: "pan",
    21: "delayModLFO",
    22: "freqModLFO",
    23: "delayVibLFO",
    24: "freqVibLFO",
    25: "delayModEnv",
    26: "attackModEnv",
    27: "holdModEnv",
    28: "decayModEnv",
    29: "sustainModEnv",
    30: "releaseModEnv",
    31: "keynumToModEnvHold",
    32: "keynumToModEnvDecay",
    33: "delayVolEnv",
    34: "attackVolEnv",
    35: "holdVolEnv",
    36: "decayVolEnv",
    37: "sustainVolEnv",
    38: "releaseVolEnv",
    39: "keynumToVolEnvHold",
    40: "keynumToVolEnvDecay",
    41: "instrument",
    43: "keyRange",
    44: "velRange",
    45: "startloopAddrsCoarseOffset",
    46: "keynum",
    47: "velocity",
    48: "initialAttenuation",
    50: "endloopAddrsCoarseOffset",
    51: "coarseTune",
    52: "fineTune",
    53: "sampleID",
    54: "sampleModes",
    56: "scaleTuning",
    57: "exclusiveClass",
    58: "overridingRootKey",
}

GEN_INSTRUMENT = 41
GEN_KEY_RANGE = 43
GEN_VEL_RANGE = 44
GEN_SAMPLE_ID = 53
_RANGE_GENERATORS = (GEN_KEY_RANGE, GEN_VEL_RANGE)

# pdta sub-chunk -> (record struct, minimum record count incl. terminal)
_HYDRA_RECORDS: dict[bytes, tuple[struct.Struct, int]] = {
    b"phdr": (struct.Struct("<20sHHHIII"), 1),
    b"pbag": (struct.Struct("<HH"), 1),
    b"pmod": (struct.Struct("<HHhHH"), 1),
    b"pgen": (struct.Struct("<HH"), 1),
    b"inst": (struct.Struct("<20sH"), 1),
    b"ibag": (struct.Struct("<HH"), 1),
    b"imod": (struct.Struct("<HHhHH"), 1),
    b"igen": (struct.Struct("<HH"), 1),
    b"shdr": (struct.Struct("<20sIIIIIBbHH"), 1),
}

_ROM_SAMPLE = 0x8000


class _MalformedBank(Exception):
    """Internal parse failure; converted to ResourceError at the boundary."""


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Generator:
    """A single generator (operator, amount) of a zone.

    ``amount`` is the raw 16-bit value; use ``value`` for the signed
    interpretation and ``range`` for keyRange/velRange.
    """

    operator: int
    amount: int

    @property
    def name(self) -> str:
        return GENERATOR_NAMES.get(self.operator, f"gen{self.operator}")

    @property
    def value(self) -> int:
        return self.amount - 0x10000 if self.amount >= 0x8000 else self.amount

    @property
    def range(self) -> tuple[int, int]:
        return self.amount & 0xFF, self.amount >> 8


@dataclass(frozen=True)
class Zone:
    """A preset or instrument zone: a list of generators.

    A global zone holds defaults shared by the other zones of its parent and
    has no instrument/sample link.
    """

    generators: tuple[Generator, ...]
    is_global: bool = False

    def get(self, operator: int) -> Generator | None:
        for gen in self.generators:
            if gen.operator == operator:
                return gen
        return None

    @property
    def key_range(self) -> tuple[int, int]:
        gen = self.get(GEN_KEY_RANGE)
        return gen.range if gen is not None else (0, 127)

    @property
    def vel_range(self) -> tuple[int, int]:
        gen = self.get(GEN_VEL_RANGE)
        return gen.range if gen is not None else (0, 127)

    def parameters(self) -> dict[str, int | tuple[int, int]]:
        """Generators as {name: value}, ranges as (lo, hi)."""
        return {
            g.name: g.range if g.operator in _RANGE_GENERATORS else g.value
            for g in self.generators
        }


@dataclass(frozen=True)
class SampleHeader:
    name: str
    start: int
    end: int
    loop_start: int
    loop_end: int
    sample_rate: int
    original_pitch: int
    pitch_correction: int
    link: int
    sample_type: int

    @property
    def is_rom(self) -> bool:
        return bool(self.sample_type & _ROM_SAMPLE)


@dataclass(frozen=True)
class Instrument:
    name: str
    zones: tuple[Zone, ...]

    def sample_ids(self) -> list[int]:
        ids = []
        for zone in self.zones:
            gen = zone.get(GEN_SAMPLE_ID)
            if gen is not None:
                ids.append(gen.amount)
        return ids


@dataclass(frozen=True)
class Preset:
    """A playable patch, addressed by (bank, program)."""

    name: str
    program: int
    bank: int
    zones: tuple[Zone, ...]

    def instrument_ids(self) -> list[int]:
        ids = []
        for zone in self.zones:
            gen = zone.get(GEN_INSTRUMENT)
            if gen is not None:
                ids.append(gen.amount)
        return ids


@dataclass(frozen=True)
class InstrumentBank:
    """Parsed, immutable view of a SoundFont file.

    Attributes:
        path: The file the bank was loaded from (engines reload from here).
        version: (major, minor) from the ``ifil`` chunk.
        name: Bank name from ``INAM`` ("" if absent).
        sound_engine: Target engine from ``isng`` ("" if absent).
        presets: Presets in file order.
        instruments: Instruments in file order.
        samples: Sample headers in file order.
        sample_data_bytes: Size of the ``smpl`` chunk.
    """

    path: Path
    version: tuple[int, int]
    name: str
    sound_engine: str
    presets: tuple[Preset, ...]
    instruments: tuple[Instrument, ...] = field(default_factory=tuple)
    samples: tuple[SampleHeader, ...] = field(default_factory=tuple)
    sample_data_bytes: int = 0

    @property
    def is_compressed(self) -> bool:
        return self.version[0] == 3

    def find_preset(self, bank: int, program: int) -> Preset | None:
        for preset in self.presets:
            if preset.bank == bank and preset.program == program:
                return preset
        return None


# ---------------------------------------------------------------------------
# RIFF helpers
# ---------------------------------------------------------------------------

def _decode_name(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("latin-1").strip()


def _read_exact(f: BinaryIO, n: int) -> bytes:
    data = f.read(n)
    if len(data) != n:
        raise _MalformedBank("unexpected end of file")
    return data


def _iter_chunks(f: BinaryIO, end: int):
    """Yield (tag, body_offset, size) for each chunk up to ``end``.

    The file is positioned at the chunk body when a chunk is yielded; the
    caller may read it, and the iterator seeks past it (with RIFF padding).
    """
    pos = f.tell()
    while pos + 8 <= end:
        f.seek(pos)
        tag, size = struct.unpack("<4sI", _read_exact(f, 8))
        body = pos + 8
        if body + size > end:
            raise _MalformedBank(f"chunk {tag!r} overruns its container")
        yield tag, body, size
        pos = body + size + (size & 1)


def _read_info(f: BinaryIO, end: int) -> dict[bytes, bytes]:
    info = {}
    for tag, _body, size in _iter_chunks(f, end):
        info[tag] = _read_exact(f, size)
    return info


def _read_hydra(f: BinaryIO, end: int) -> dict[bytes, list[tuple]]:
    raw = {}
    for tag, _body, size in _iter_chunks(f, end):
        if tag in _HYDRA_RECORDS:
            raw[tag] = _read_exact(f, size)

    hydra = {}
    for tag, (record, min_count) in _HYDRA_RECORDS.items():
        if tag not in raw:
            raise _MalformedBank(f"missing {tag.decode()} chunk")
        data = raw[tag]
        if len(data) % record.size:
            raise _MalformedBank(
                f"{tag.decode()} size {len(data)} is not a multiple of {record.size}",
            )
        records = list(record.iter_unpack(data))
        if len(records) < min_count:
            raise _MalformedBank(f"{tag.decode()} chunk has no terminal record")
        hydra[tag] = records
    return hydra


# ---------------------------------------------------------------------------
# Hydra decoding
# ---------------------------------------------------------------------------

def _zones(
    owner: str,
    bag_start: int,
    bag_end: int,
    bags: list[tuple],
    gens: list[tuple],
    link_operator: int,
) -> tuple[Zone, ...]:
    if not 0 <= bag_start <= bag_end <= len(bags) - 1:
        raise _MalformedBank(f"{owner} has invalid zone indices")

    zones = []
    for i in range(bag_start, bag_end):
        gen_start, gen_end = bags[i][0], bags[i + 1][0]
        if not 0 <= gen_start <= gen_end <= len(gens) - 1:
            raise _MalformedBank(f"{owner} has invalid generator indices")
        generators = tuple(Generator(op, amount) for op, amount in gens[gen_start:gen_end])
        linked = any(g.operator == link_operator for g in generators)
        zones.append(Zone(generators=generators, is_global=not linked and i == bag_start))
    return tuple(zones)


def _decode_samples(records: list[tuple], major: int, smpl_size: int) -> tuple[SampleHeader, ...]:
    pool_frames = smpl_size // 2
    samples = []
    for rec in records[:-1]:
        header = SampleHeader(
            name=_decode_name(rec[0]),
            start=rec[1],
            end=rec[2],
            loop_start=rec[3],
            loop_end=rec[4],
            sample_rate=rec[5],
            original_pitch=rec[6],
            pitch_correction=rec[7],
            link=rec[8],
            sample_type=rec[9],
        )
        # SF3 offsets address compressed data; only SF2 bounds are checkable.
        if major == 2 and not header.is_rom:
            if header.start > header.end or header.end > pool_frames:
                raise _MalformedBank(f"sample {header.name!r} lies outside the sample data")
        samples.append(header)
    return tuple(samples)


def _decode_instruments(hydra: dict, n_samples: int) -> tuple[Instrument, ...]:
    records = hydra[b"inst"]
    instruments = []
    for rec, nxt in zip(records, records[1:]):
        name = _decode_name(rec[0])
        zones = _zones(
            f"instrument {name!r}", rec[1], nxt[1],
            hydra[b"ibag"], hydra[b"igen"], GEN_SAMPLE_ID,
        )
        inst = Instrument(name=name, zones=zones)
        for sample_id in inst.sample_ids():
            if sample_id >= n_samples:
                raise _MalformedBank(
                    f"instrument {name!r} references missing sample {sample_id}",
                )
        instruments.append(inst)
    return tuple(instruments)


def _decode_presets(hydra: dict, n_instruments: int) -> tuple[Preset, ...]:
    records = hydra[b"phdr"]
    presets = []
    for rec, nxt in zip(records, records[1:]):
        name = _decode_name(rec[0])
        zones = _zones(
            f"preset {name!r}", rec[3], nxt[3],
            hydra[b"pbag"], hydra[b"pgen"], GEN_INSTRUMENT,
        )
        preset = Preset(name=name, program=rec[1], bank=rec[2], zones=zones)
        for inst_id in preset.instrument_ids():
            if inst_id >= n_instruments:
                raise _MalformedBank(
                    f"preset {name!r} references missing instrument {inst_id}",
                )
        presets.append(preset)
    return tuple(presets)


def _parse(path: Path, f: BinaryIO) -> InstrumentBank:
    file_size = os.fstat(f.fileno()).st_size
    tag, size = struct.unpack("<4sI", _read_exact(f, 8))
    if tag != b"RIFF":
        raise _MalformedBank("not a RIFF file")
    if _read_exact(f, 4) != b"sfbk":
        raise _MalformedBank("RIFF form is not sfbk")
    end = 8 + size
    if end > file_size:
        raise _MalformedBank("file is truncated")

    info = sdta = hydra = None
    for tag, body, size in _iter_chunks(f, end):
        if tag != b"LIST" or size < 4:
            continue
        list_type = _read_exact(f, 4)
        list_end = body + size
        if list_type == b"INFO":
            info = _read_info(f, list_end)
        elif list_type == b"sdta":
            sdta = {t: s for t, _b, s in _iter_chunks(f, list_end)}
        elif list_type == b"pdta":
            hydra = _read_hydra(f, list_end)

    if info is None:
        raise _MalformedBank("missing INFO list")
    if sdta is None:
        raise _MalformedBank("missing sdta list")
    if hydra is None:
        raise _MalformedBank("missing pdta list")

    ifil = info.get(b"ifil")
    if ifil is None or len(ifil) != 4:
        raise _MalformedBank("missing or invalid ifil version chunk")
    major, minor = struct.unpack("<HH", ifil)
    if major not in SUPPORTED_MAJOR_VERSIONS:
        raise _MalformedBank(f"unsupported SoundFont version {major}.{minor}")
    if b"smpl" not in sdta:
        raise _MalformedBank("missing smpl sample data")

    samples = _decode_samples(hydra[b"shdr"], major, sdta[b"smpl"])
    instruments = _decode_instruments(hydra, len(samples))
    presets = _decode_presets(hydra, len(instruments))
    if not presets:
        raise _MalformedBank("bank contains no presets")

    return InstrumentBank(
        path=path,
        version=(major, minor),
        name=_decode_name(info.get(b"INAM", b"")),
        sound_engine=_decode_name(info.get(b"isng", b"")),
        presets=presets,
        instruments=instruments,
        samples=samples,
        sample_data_bytes=sdta[b"smpl"],
    )


def load_bank(path: str | Path) -> InstrumentBank:
    """Open and parse a SoundFont file.

    Args:
        path: Path to a .sf2/.sf3 file.

    Returns:
        The parsed ``InstrumentBank``. No file handle is retained.

    Raises:
        ResourceError: (kind BANK) if the file is missing, unreadable or
            structurally invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceError(ResourceKind.BANK, path, "file not found")

    try:
        with open(path, "rb") as f:
            bank = _parse(path, f)
    except _MalformedBank as exc:
        raise ResourceError(ResourceKind.BANK, path, str(exc)) from exc
    except (OSError, struct.error) as exc:
        raise ResourceError(ResourceKind.BANK, path, str(exc)) from exc

    logger.info(
        "Loaded bank %s (SoundFont %d.%d, %d presets, %d samples)",
        path, bank.version[0], bank.version[1], len(bank.presets), len(bank.samples),
    )
    return bank
