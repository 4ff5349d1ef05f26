from __future__ import annotations

"""Little-endian cursor reads over a byte buffer."""

import struct

__all__ = [
    "BinaryReader",
    "ReadError",
    "UnexpectedEndOfInput",
]

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")
_F64 = struct.Struct("<d")


class ReadError(ValueError):
    pass


class UnexpectedEndOfInput(ReadError):
    def __init__(self, name: str, *, offset: int, size: int, remaining: int) -> None:
        super().__init__(
            f"unexpected end of input reading {name}: need {size} bytes at offset {offset:#x}, {remaining} left"
        )
        self.name = name
        self.offset = offset
        self.size = size
        self.remaining = remaining


class BinaryReader:
    """Cursor over `data`; every read consumes exactly its width or raises."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes | bytearray | memoryview, offset: int = 0) -> None:
        self._data = bytes(data)
        if not (0 <= offset <= len(self._data)):
            raise ReadError(f"offset {offset} outside buffer of {len(self._data)} bytes")
        self._pos = int(offset)

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _take(self, size: int, name: str) -> bytes:
        if size < 0:
            raise ReadError(f"negative size {size} reading {name}")
        if size > self.remaining:
            raise UnexpectedEndOfInput(name, offset=self._pos, size=size, remaining=self.remaining)
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def _unpack(self, fmt: struct.Struct, name: str):
        return fmt.unpack(self._take(fmt.size, name))[0]

    def u8(self, name: str = "u8") -> int:
        return self._unpack(_U8, name)

    def i8(self, name: str = "i8") -> int:
        return self._unpack(_I8, name)

    def u16(self, name: str = "u16") -> int:
        return self._unpack(_U16, name)

    def i16(self, name: str = "i16") -> int:
        return self._unpack(_I16, name)

    def u32(self, name: str = "u32") -> int:
        return self._unpack(_U32, name)

    def i32(self, name: str = "i32") -> int:
        return self._unpack(_I32, name)

    def u64(self, name: str = "u64") -> int:
        return self._unpack(_U64, name)

    def i64(self, name: str = "i64") -> int:
        return self._unpack(_I64, name)

    def f64(self, name: str = "f64") -> float:
        return self._unpack(_F64, name)

    def bytes(self, size: int, name: str = "bytes") -> bytes:
        return self._take(int(size), name)

    def string(self, name: str = "string") -> bytes:
        """u32 length prefix followed by that many raw bytes."""
        start = self._pos
        size = self.u32(f"{name} length")
        try:
            return self._take(size, name)
        except UnexpectedEndOfInput:
            self._pos = start
            raise

    def rest(self) -> bytes:
        return self._take(self.remaining, "rest")
