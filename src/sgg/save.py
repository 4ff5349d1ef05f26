from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import zlib

import lz4.block
from construct import (
    Construct,
    Flag,
    GreedyBytes,
    Int32ul,
    Int64ul,
    PascalString,
    Prefixed,
    PrefixedArray,
    Struct,
    Terminated,
)
from construct.core import ConstructError

from .reader import BinaryReader, ReadError

__all__ = [
    "SAVE_FORMATS",
    "SIGNATURE",
    "SaveDecompressError",
    "SaveFile",
    "SaveFormat",
    "SaveFormatError",
    "build_save",
    "decompress_lua_state",
    "load_save",
    "read_save",
]

SIGNATURE = b"SGB1"
HEADER_SIZE = 8  # signature + checksum; the checksum covers everything after


class SaveFormatError(ValueError):
    pass


class SaveDecompressError(ValueError):
    pass


_LenString = PascalString(Int32ul, "utf8")

SAVE_V16_BODY = Struct(
    "version" / Int32ul,
    "timestamp" / Int64ul,
    "location" / _LenString,
    "runs" / Int32ul,
    "active_meta_points" / Int32ul,
    "active_shrine_points" / Int32ul,
    "god_mode_enabled" / Flag,
    "hell_mode_enabled" / Flag,
    "lua_keys" / PrefixedArray(Int32ul, _LenString),
    "current_map_name" / _LenString,
    "start_next_map" / _LenString,
    "lua_state_lz4" / Prefixed(Int32ul, GreedyBytes),
    Terminated,
)


@dataclass(frozen=True, slots=True)
class SaveFormat:
    version: int
    body: Construct
    # Upper bound for the decompressed Lua state of this version.
    uncompressed_size: int


SAVE_FORMATS: dict[int, SaveFormat] = {
    16: SaveFormat(version=16, body=SAVE_V16_BODY, uncompressed_size=9388032),
}


@dataclass(frozen=True, slots=True)
class SaveFile:
    version: int
    timestamp: int
    location: str
    runs: int
    active_meta_points: int
    active_shrine_points: int
    god_mode_enabled: bool
    hell_mode_enabled: bool
    lua_keys: tuple[str, ...]
    current_map_name: str
    start_next_map: str
    lua_state_lz4: bytes

    @property
    def format(self) -> SaveFormat:
        return SAVE_FORMATS[self.version]


def _checksum(body: bytes) -> int:
    return zlib.adler32(body) & 0xFFFFFFFF


def read_save(data: bytes) -> SaveFile:
    reader = BinaryReader(data)
    try:
        signature = reader.bytes(len(SIGNATURE), "signature")
        if signature != SIGNATURE:
            raise SaveFormatError(f"bad signature: {signature!r}")
        stored_checksum = reader.u32("checksum")
        body = reader.rest()
        version = BinaryReader(body).u32("version")
    except ReadError as exc:
        raise SaveFormatError(str(exc)) from exc

    fmt = SAVE_FORMATS.get(version)
    if fmt is None:
        supported = ", ".join(str(v) for v in sorted(SAVE_FORMATS))
        raise SaveFormatError(f"unsupported save version {version} (supported: {supported})")

    computed = _checksum(body)
    if computed != stored_checksum:
        raise SaveFormatError(f"checksum mismatch: stored {stored_checksum:#010x}, computed {computed:#010x}")

    try:
        parsed = fmt.body.parse(body)
    except ConstructError as exc:
        raise SaveFormatError(f"failed to parse save v{version}: {exc}") from exc

    blob = bytes(parsed.lua_state_lz4)
    if not blob:
        raise SaveFormatError("save has an empty lua state")

    return SaveFile(
        version=int(parsed.version),
        timestamp=int(parsed.timestamp),
        location=str(parsed.location),
        runs=int(parsed.runs),
        active_meta_points=int(parsed.active_meta_points),
        active_shrine_points=int(parsed.active_shrine_points),
        god_mode_enabled=bool(parsed.god_mode_enabled),
        hell_mode_enabled=bool(parsed.hell_mode_enabled),
        lua_keys=tuple(str(key) for key in parsed.lua_keys),
        current_map_name=str(parsed.current_map_name),
        start_next_map=str(parsed.start_next_map),
        lua_state_lz4=blob,
    )


def load_save(path: Path) -> SaveFile:
    return read_save(Path(path).read_bytes())


def build_save(save: SaveFile) -> bytes:
    fmt = SAVE_FORMATS.get(save.version)
    if fmt is None:
        raise SaveFormatError(f"unsupported save version {save.version}")
    try:
        body = fmt.body.build(
            {
                "version": save.version,
                "timestamp": save.timestamp,
                "location": save.location,
                "runs": save.runs,
                "active_meta_points": save.active_meta_points,
                "active_shrine_points": save.active_shrine_points,
                "god_mode_enabled": save.god_mode_enabled,
                "hell_mode_enabled": save.hell_mode_enabled,
                "lua_keys": list(save.lua_keys),
                "current_map_name": save.current_map_name,
                "start_next_map": save.start_next_map,
                "lua_state_lz4": save.lua_state_lz4,
            }
        )
    except ConstructError as exc:
        raise SaveFormatError(f"failed to build save v{save.version}: {exc}") from exc
    return SIGNATURE + _checksum(body).to_bytes(4, "little") + body


def decompress_lua_state(save: SaveFile) -> bytes:
    size = save.format.uncompressed_size
    try:
        return lz4.block.decompress(save.lua_state_lz4, uncompressed_size=size)
    except lz4.block.LZ4BlockError as exc:
        raise SaveDecompressError(f"failed to decompress lua state (bound {size} bytes): {exc}") from exc
