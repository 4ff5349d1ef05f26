from __future__ import annotations

import logging
from pathlib import Path

import msgspec
import typer

from sgg import luabins
from sgg.rand import SggPcg, rand_double, rand_int
from sgg.save import SaveDecompressError, SaveFormatError, decompress_lua_state, load_save

from .config import RouteFinderConfig, SCRIPTS_DIR_ENV
from .hooks import lua_int32
from .host import ScriptError
from .session import run_route_finder

app = typer.Typer(add_completion=False)

_LOG_LEVELS = ("debug", "info", "warning", "error")


def _configure_logging(level: str) -> None:
    name = level.strip().lower()
    if name not in _LOG_LEVELS:
        typer.echo(f"Invalid log level: {level!r}. Choose from: {', '.join(_LOG_LEVELS)}", err=True)
        raise typer.Exit(code=1)
    logging.basicConfig(level=getattr(logging, name.upper()), format="%(levelname)s %(name)s: %(message)s")


@app.command("run")
def cmd_run(
    script: Path = typer.Argument(..., help="lua script to run after the save state is loaded"),
    scripts_dir: Path = typer.Option(..., "--scripts-dir", "-s", envvar=SCRIPTS_DIR_ENV, help="game Scripts directory"),
    save_file: Path = typer.Option(..., "--save-file", "-f", help="save file (.sav)"),
    engine_file: Path = typer.Option(Path("Engine.lua"), help="engine callback stubs"),
    log_level: str = typer.Option("warning", help="debug|info|warning|error"),
) -> None:
    """Load game scripts and save state, then run SCRIPT with the engine RNG hooks."""
    _configure_logging(log_level)
    config = RouteFinderConfig(
        scripts_dir=scripts_dir,
        save_file=save_file,
        script=script,
        engine_file=engine_file,
    )
    try:
        run_route_finder(config)
    except (ScriptError, OSError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _load_or_exit(path: Path):
    try:
        return load_save(path)
    except (OSError, SaveFormatError) as exc:
        typer.echo(f"error reading save: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command("save-info")
def cmd_save_info(save_file: Path) -> None:
    """Print the save container metadata."""
    save = _load_or_exit(save_file)
    typer.echo(f"version: {save.version}")
    typer.echo(f"timestamp: {save.timestamp}")
    typer.echo(f"location: {save.location}")
    typer.echo(f"runs: {save.runs}")
    typer.echo(f"active meta points: {save.active_meta_points}")
    typer.echo(f"active shrine points: {save.active_shrine_points}")
    typer.echo(f"god mode: {save.god_mode_enabled}")
    typer.echo(f"hell mode: {save.hell_mode_enabled}")
    typer.echo(f"current map: {save.current_map_name}")
    typer.echo(f"start next map: {save.start_next_map}")
    typer.echo(f"lua keys: {len(save.lua_keys)}")
    typer.echo(f"lua state: {len(save.lua_state_lz4)} bytes compressed")


@app.command("dump-save")
def cmd_dump_save(
    save_file: Path,
    output: Path | None = typer.Option(None, "--output", "-o", help="write JSON here instead of stdout"),
) -> None:
    """Decode the save's Lua state and print it as JSON."""
    save = _load_or_exit(save_file)
    try:
        values = luabins.load(decompress_lua_state(save))
    except (SaveDecompressError, luabins.LuabinsError) as exc:
        typer.echo(f"error decoding lua state: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    payload = msgspec.json.format(msgspec.json.encode([luabins.to_builtins(v) for v in values]), indent=2)
    if output is None:
        typer.echo(payload.decode("utf-8"))
    else:
        output.write_bytes(payload + b"\n")
        typer.echo(f"wrote {len(values)} values to {output}")


@app.command("rng")
def cmd_rng(
    seed: int = typer.Option(0, help="RandomSeed value (signed 32-bit)"),
    count: int = typer.Option(10, min=0, help="number of draws"),
    min_value: int | None = typer.Option(None, "--min", help="RandomInt lower bound"),
    max_value: int | None = typer.Option(None, "--max", help="RandomInt upper bound"),
    double: bool = typer.Option(False, "--double", help="draw RandomFloat values in [0, 1)"),
) -> None:
    """Print draws from a freshly seeded engine generator."""
    if (min_value is None) != (max_value is None):
        typer.echo("--min and --max must be given together", err=True)
        raise typer.Exit(code=1)
    if double and min_value is not None:
        typer.echo("--double cannot be combined with --min/--max", err=True)
        raise typer.Exit(code=1)
    rng = SggPcg(lua_int32(seed))
    for idx in range(count):
        if double:
            value: object = repr(rand_double(rng))
        elif min_value is not None and max_value is not None:
            value = rand_int(rng, min_value, max_value)
        else:
            value = rng.next_u32()
        typer.echo(f"{idx:3d}  {value}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="routefinder", args=argv)


if __name__ == "__main__":
    main()
