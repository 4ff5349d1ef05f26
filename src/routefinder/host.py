from __future__ import annotations

import math
from collections.abc import Callable, Container, Iterable, MutableMapping
from pathlib import Path

import lupa
from lupa import LuaRuntime

from sgg.luabins import LuaTable, LuaValue

from .files import read_file
from .hooks import RandomHooks

__all__ = [
    "LuaHost",
    "ScriptError",
    "global_name",
    "inject_save_globals",
]


class ScriptError(RuntimeError):
    pass


def global_name(key: object) -> object:
    """Name used for ignore-set lookups; byte strings compare as text."""
    if isinstance(key, (bytes, bytearray)):
        return bytes(key).decode("utf-8", errors="replace")
    return key


def _valid_key(key: LuaValue) -> bool:
    if key is None:
        return False
    if isinstance(key, float) and math.isnan(key):
        return False
    return True


def inject_save_globals(
    globals_: MutableMapping,
    values: Iterable[LuaValue],
    ignore: Container = (),
    *,
    convert: Callable[[LuaValue], object] = lambda value: value,
) -> int:
    """Merge every top-level table's pairs into `globals_`, skipping ignored names.

    Non-table top-level values carry no names and are skipped. Returns the
    number of assignments made.
    """
    assigned = 0
    for value in values:
        if not isinstance(value, LuaTable):
            continue
        for key, item in value.entries:
            if not _valid_key(key) or global_name(key) in ignore:
                continue
            globals_[convert(key)] = convert(item)
            assigned += 1
    return assigned


class LuaHost:
    """Embedded Lua runtime wired up the way the game scripts expect."""

    def __init__(self, scripts_dir: Path, *, hooks: RandomHooks | None = None) -> None:
        self.scripts_dir = Path(scripts_dir)
        self.hooks = hooks if hooks is not None else RandomHooks()
        # No `python` global: game and route scripts only see what we install.
        self.lua = LuaRuntime(unpack_returned_tuples=True, register_eval=False, register_builtins=False)
        self.globals = self.lua.globals()
        self.globals["Import"] = self._import

    def _import(self, name: str) -> None:
        self.lua.execute(read_file(self.scripts_dir / str(name)))

    def install_random_hooks(self) -> None:
        for name, fn in self.hooks.as_globals().items():
            self.globals[name] = fn

    def execute(self, code: str | bytes, *, source: str = "<string>") -> object:
        try:
            return self.lua.execute(code)
        # Hook failures surface as the Python exception raised inside the callback.
        except (lupa.LuaError, TypeError, ValueError, RuntimeError, OSError) as exc:
            raise ScriptError(f"{source}: {exc}") from exc

    def run_file(self, path: Path) -> object:
        return self.execute(read_file(path), source=str(path))

    def _table_for(self, value: LuaTable, cache: dict[int, object], pending: list[LuaTable]) -> object:
        table = cache.get(id(value))
        if table is None:
            table = self.lua.table()
            cache[id(value)] = table
            pending.append(value)
        return table

    def to_lua(self, value: LuaValue, *, cache: dict[int, object] | None = None) -> object:
        if not isinstance(value, LuaTable):
            return value
        if cache is None:
            cache = {}
        pending: list[LuaTable] = []
        root = self._table_for(value, cache, pending)
        # Worklist instead of recursion; nesting depth is bounded only by the save.
        while pending:
            node = pending.pop()
            table = cache[id(node)]
            for key, item in node.entries:
                if not _valid_key(key):
                    continue
                if isinstance(key, LuaTable):
                    key = self._table_for(key, cache, pending)
                if isinstance(item, LuaTable):
                    item = self._table_for(item, cache, pending)
                table[key] = item
        return root

    def ignored_names(self, table_name: str) -> set[object]:
        table = self.globals[table_name]
        if table is None or lupa.lua_type(table) != "table":
            return set()
        return {global_name(key) for key, flag in table.items() if flag is not None and flag is not False}

    def inject_save_data(self, values: list[LuaValue], *, data_global: str, ignore_table: str) -> int:
        cache: dict[int, object] = {}
        stack = self.lua.table()
        for index, value in enumerate(values, start=1):
            stack[index] = self.to_lua(value, cache=cache)
        self.globals[data_global] = stack
        # Same table objects in both places, as if merged from Lua with pairs().
        return inject_save_globals(
            self.globals,
            values,
            self.ignored_names(ignore_table),
            convert=lambda value: self.to_lua(value, cache=cache),
        )
