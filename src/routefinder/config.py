from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_ENGINE_FILE = Path("Engine.lua")
DEFAULT_PRELOAD_SCRIPTS: tuple[str, ...] = ("Main.lua", "RoomManager.lua")
SAVE_DATA_GLOBAL = "RouteFinderSaveFileData"
SAVE_IGNORES_GLOBAL = "SaveIgnores"
SCRIPTS_DIR_ENV = "HADES_SCRIPTS_DIR"


@dataclass(frozen=True, slots=True)
class RouteFinderConfig:
    scripts_dir: Path
    save_file: Path
    script: Path
    # Engine callback stubs; resolved against the working directory.
    engine_file: Path = DEFAULT_ENGINE_FILE
    preload_scripts: tuple[str, ...] = DEFAULT_PRELOAD_SCRIPTS
    save_data_global: str = SAVE_DATA_GLOBAL
    ignore_table: str = SAVE_IGNORES_GLOBAL

    def preload_paths(self) -> tuple[Path, ...]:
        return tuple(self.scripts_dir / name for name in self.preload_scripts)
