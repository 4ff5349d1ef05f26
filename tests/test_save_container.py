from __future__ import annotations

import struct
import zlib

import pytest

from sgg import luabins
from sgg.save import (
    SAVE_FORMATS,
    SaveDecompressError,
    SaveFormatError,
    decompress_lua_state,
    load_save,
    read_save,
)

from helpers import lua_str, lua_table, luabins_bytes, make_save, make_save_bytes

LUA_STATE = luabins_bytes(lua_table((lua_str(b"NextSeeds"), b"1")))


def _reseal(data: bytes) -> bytes:
    body = data[8:]
    return data[:4] + struct.pack("<I", zlib.adler32(body)) + body


def test_read_save_returns_all_fields() -> None:
    expected = make_save(LUA_STATE)
    save = read_save(make_save_bytes(LUA_STATE))
    assert save == expected
    assert save.format.uncompressed_size == 9388032
    assert decompress_lua_state(save) == LUA_STATE


def test_v16_size_bound_is_registered() -> None:
    assert set(SAVE_FORMATS) == {16}
    assert SAVE_FORMATS[16].uncompressed_size == 9388032


def test_load_save_from_disk(tmp_path) -> None:
    path = tmp_path / "Profile1.sav"
    path.write_bytes(make_save_bytes(LUA_STATE, runs=7))
    assert load_save(path).runs == 7


def test_bad_signature() -> None:
    data = b"XXXX" + make_save_bytes(LUA_STATE)[4:]
    with pytest.raises(SaveFormatError, match="bad signature"):
        read_save(data)


def test_unknown_version() -> None:
    data = bytearray(make_save_bytes(LUA_STATE))
    struct.pack_into("<I", data, 8, 17)
    with pytest.raises(SaveFormatError, match="unsupported save version 17"):
        read_save(_reseal(bytes(data)))


def test_checksum_mismatch() -> None:
    data = bytearray(make_save_bytes(LUA_STATE))
    data[-1] ^= 0xFF
    with pytest.raises(SaveFormatError, match="checksum mismatch"):
        read_save(bytes(data))


@pytest.mark.parametrize("cut", [0, 3, 7, 10, 20, 60])
def test_truncated_buffers(cut: int) -> None:
    data = make_save_bytes(LUA_STATE)[:cut]
    if cut > 8:
        data = _reseal(data)
    with pytest.raises(SaveFormatError):
        read_save(data)


def test_trailing_bytes_are_rejected() -> None:
    data = _reseal(make_save_bytes(LUA_STATE) + b"\x00")
    with pytest.raises(SaveFormatError, match="failed to parse"):
        read_save(data)


def test_empty_lua_state_is_rejected() -> None:
    data = make_save_bytes(LUA_STATE, lua_state_lz4=b"")
    with pytest.raises(SaveFormatError, match="empty lua state"):
        read_save(data)


def test_corrupt_blob_fails_decompression() -> None:
    save = read_save(make_save_bytes(LUA_STATE, lua_state_lz4=b"\xff" * 16))
    with pytest.raises(SaveDecompressError):
        decompress_lua_state(save)


def test_full_pipeline_decodes_lua_state() -> None:
    save = read_save(make_save_bytes(LUA_STATE))
    (top,) = luabins.load(decompress_lua_state(save))
    assert top.to_dict() == {b"NextSeeds": True}
