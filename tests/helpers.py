from __future__ import annotations

import struct

import lz4.block

from sgg.save import SaveFile, build_save


def luabins_bytes(*encoded_values: bytes) -> bytes:
    return bytes([len(encoded_values)]) + b"".join(encoded_values)


def lua_str(value: bytes) -> bytes:
    return b"S" + struct.pack("<I", len(value)) + value


def lua_num(value: float) -> bytes:
    return b"N" + struct.pack("<d", value)


def lua_table(*pairs: tuple[bytes, bytes]) -> bytes:
    return b"T" + struct.pack("<ii", 0, len(pairs)) + b"".join(k + v for k, v in pairs)


def make_save(lua_state: bytes, **overrides: object) -> SaveFile:
    fields: dict[str, object] = {
        "version": 16,
        "timestamp": 132_000_000_000_000_000,
        "location": "Tartarus",
        "runs": 42,
        "active_meta_points": 120,
        "active_shrine_points": 8,
        "god_mode_enabled": False,
        "hell_mode_enabled": True,
        "lua_keys": ("GameState", "CurrentRun"),
        "current_map_name": "RoomOpening",
        "start_next_map": "",
        "lua_state_lz4": lz4.block.compress(lua_state, store_size=False),
    }
    fields.update(overrides)
    return SaveFile(**fields)  # type: ignore[arg-type]


def make_save_bytes(lua_state: bytes, **overrides: object) -> bytes:
    return build_save(make_save(lua_state, **overrides))
