from __future__ import annotations

import logging
from pathlib import Path

from sgg import luabins
from sgg.luabins import LuaValue, LuabinsError
from sgg.save import SaveDecompressError, SaveFormatError, decompress_lua_state, read_save

from .config import RouteFinderConfig
from .files import read_file

logger = logging.getLogger(__name__)


def decode_save_bytes(data: bytes) -> list[LuaValue]:
    """Container -> LZ4 -> luabins, raising on the first failure."""
    save = read_save(data)
    raw = decompress_lua_state(save)
    return luabins.load(raw)


def load_save_values(path: Path) -> list[LuaValue]:
    """Decode the save's Lua state, or return `[]` if anything is wrong with it.

    A missing or corrupt save must not stop the script from running; it only
    runs without the saved globals.
    """
    try:
        data = read_file(path)
    except OSError as exc:
        logger.warning("error reading save %s: %s", path, exc)
        return []
    try:
        values = decode_save_bytes(data)
    except SaveFormatError as exc:
        logger.warning("error reading save %s: %s", path, exc)
        return []
    except SaveDecompressError as exc:
        logger.warning("error decompressing save %s: %s", path, exc)
        return []
    except LuabinsError as exc:
        logger.warning("error decoding lua state in %s: %s", path, exc)
        return []
    logger.debug("decoded %d top-level values from %s", len(values), path)
    return values


def run_route_finder(config: RouteFinderConfig) -> None:
    from .host import LuaHost

    host = LuaHost(config.scripts_dir)
    host.run_file(config.engine_file)
    # Installed after the engine stubs so they win over any placeholders there.
    host.install_random_hooks()
    for path in config.preload_paths():
        host.run_file(path)
    values = load_save_values(config.save_file)
    host.inject_save_data(values, data_global=config.save_data_global, ignore_table=config.ignore_table)
    host.run_file(config.script)
