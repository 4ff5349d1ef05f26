from __future__ import annotations

"""Decoder for the luabins value stream stored in the save's Lua state.

Layout (little-endian, as written by the x86 engine):

    u8 count                      top-level values, at most 250
    value := tag payload
      '-'                         nil
      '0' / '1'                   false / true
      'N' f64                     number
      'S' u32 len, bytes[len]     string (opaque bytes)
      'T' i32 narr, i32 nhash,    table, followed by narr + nhash
          (key value)*            key/value pairs in stored order
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, TypeAlias, Union

from .reader import BinaryReader, ReadError

__all__ = [
    "LuaTable",
    "LuaValue",
    "LuabinsError",
    "MAX_TUPLE",
    "load",
    "to_builtins",
]

MAX_TUPLE = 250

TAG_NIL = ord("-")
TAG_FALSE = ord("0")
TAG_TRUE = ord("1")
TAG_NUMBER = ord("N")
TAG_STRING = ord("S")
TAG_TABLE = ord("T")


class LuabinsError(ValueError):
    pass


LuaValue: TypeAlias = Union[None, bool, int, float, bytes, "LuaTable"]


@dataclass(frozen=True, slots=True)
class LuaTable:
    entries: tuple[tuple[LuaValue, LuaValue], ...] = ()
    array_size: int = 0
    hash_size: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[LuaValue, LuaValue]]:
        return iter(self.entries)

    def get(self, key: LuaValue, default: LuaValue = None) -> LuaValue:
        # Last write wins, same as assigning the pairs into a Lua table.
        for k, v in reversed(self.entries):
            if _same_key(k, key):
                return v
        return default

    def to_dict(self) -> dict[LuaValue, LuaValue]:
        return {k: v for k, v in self.entries}


def _same_key(a: LuaValue, b: LuaValue) -> bool:
    # Lua numbers have one type, so 1 and 1.0 name the same slot; true does not.
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


@dataclass(slots=True)
class _TableFrame:
    array_size: int
    hash_size: int
    items: list[LuaValue] = field(default_factory=list)

    @property
    def expected(self) -> int:
        return (self.array_size + self.hash_size) * 2

    def finish(self) -> LuaTable:
        it = iter(self.items)
        return LuaTable(entries=tuple(zip(it, it)), array_size=self.array_size, hash_size=self.hash_size)


def _read_scalar(reader: BinaryReader, tag: int, offset: int) -> LuaValue:
    if tag == TAG_NIL:
        return None
    if tag == TAG_FALSE:
        return False
    if tag == TAG_TRUE:
        return True
    if tag == TAG_NUMBER:
        return reader.f64("number")
    if tag == TAG_STRING:
        return reader.string("string")
    raise LuabinsError(f"unknown value tag {tag:#04x} at offset {offset:#x}")


def _read_table_frame(reader: BinaryReader, offset: int) -> _TableFrame:
    array_size = reader.i32("table array size")
    hash_size = reader.i32("table hash size")
    if array_size < 0 or hash_size < 0:
        raise LuabinsError(f"negative table size ({array_size}, {hash_size}) at offset {offset:#x}")
    frame = _TableFrame(array_size=array_size, hash_size=hash_size)
    # Every pending value needs at least its tag byte.
    if frame.expected > reader.remaining:
        raise LuabinsError(
            f"table at offset {offset:#x} declares {array_size + hash_size} pairs "
            f"but only {reader.remaining} bytes remain"
        )
    return frame


def _read_value(reader: BinaryReader) -> LuaValue:
    # Explicit stack so nesting depth is bounded by the input, not the interpreter.
    stack: list[_TableFrame] = []
    while True:
        offset = reader.position
        tag = reader.u8("value tag")
        if tag == TAG_TABLE:
            frame = _read_table_frame(reader, offset)
            if frame.expected:
                stack.append(frame)
                continue
            value: LuaValue = frame.finish()
        else:
            value = _read_scalar(reader, tag, offset)

        while True:
            if not stack:
                return value
            parent = stack[-1]
            parent.items.append(value)
            if len(parent.items) < parent.expected:
                break
            stack.pop()
            value = parent.finish()


def load(data: bytes | bytearray | memoryview) -> list[LuaValue]:
    """Decode a complete luabins buffer into its top-level values.

    All or nothing: any malformed byte raises `LuabinsError` and no values are
    returned.
    """
    reader = BinaryReader(data)
    try:
        count = reader.u8("value count")
        if count > MAX_TUPLE:
            raise LuabinsError(f"value count {count} exceeds {MAX_TUPLE}")
        values = [_read_value(reader) for _ in range(count)]
    except ReadError as exc:
        raise LuabinsError(str(exc)) from exc
    if not reader.at_end:
        raise LuabinsError(f"{reader.remaining} trailing bytes after {count} values")
    return values


def _key_text(key: LuaValue) -> str:
    """JSON object key; non-string keys are bracketed so they never collide with strings."""
    if isinstance(key, bytes):
        return key.decode("utf-8", errors="replace")
    if isinstance(key, bool):
        return "[true]" if key else "[false]"
    if isinstance(key, float) and key.is_integer():
        return f"[{int(key)}]"
    if isinstance(key, (int, float)):
        return f"[{key!r}]"
    return "[table]"


def to_builtins(value: LuaValue) -> Any:
    """JSON-friendly view: text for strings, dicts for tables."""
    if isinstance(value, LuaTable):
        return {_key_text(k): to_builtins(v) for k, v in value.entries}
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
