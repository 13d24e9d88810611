"""CLI entry point for vnd-re.

Usage:
    vnd-re info <file>                Header and scene summary
    vnd-re vars <file>                Variable table
    vnd-re scenes <file>              List scenes
    vnd-re scene <file> <n>           Scene details (1-based)
    vnd-re search <file> <pattern>    Find commands containing a text
    vnd-re conditions <file>          List IF commands
    vnd-re boundaries <file>          Heuristic scene boundary scan
    vnd-re dump <file>                Full JSON dump
    vnd-re simulate <file> <n>        Enter a scene headless and print effects
    vnd-re extract <file> -o <dir>    Export JSON and hotspot maps
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from . import __version__


def _load(file: str):
    from .vnd.loader import load_project

    return load_project(file)


def _write_json(data) -> None:
    out = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    sys.stdout.buffer.write(out.encode("utf-8"))
    sys.stdout.buffer.write(b"\n")


def _scene_arg(project, number: int):
    if not 1 <= number <= len(project.scenes):
        raise click.BadParameter(f"scene must be 1..{len(project.scenes)}", param_hint="N")
    return project.scenes[number - 1]


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Virtual Navigator (.vnd) project reverse engineering toolkit."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(name)s %(levelname)s: %(message)s",
    )


@main.command()
@click.argument("file", type=click.Path(exists=True))
def info(file: str) -> None:
    """Show header fields and a scene summary."""
    project = _load(file)
    h = project.header
    click.echo(f"Magic:      {h.magic} v{h.version}")
    click.echo(f"Project:    {h.project_name}")
    click.echo(f"Editor:     {h.editor}")
    click.echo(f"Format:     {h.format_type}")
    click.echo(f"Display:    {h.width}x{h.height} @{h.depth}bpp")
    if h.dll_path:
        click.echo(f"DLL:        {h.dll_path}")
    click.echo(f"Variables:  {len(project.variables)}/{h.var_count} (ends at 0x{project.variables_end:X})")
    click.echo(f"Dialect:    {project.dialect.value}")
    click.echo(f"Scenes:     {len(project.scenes)}")
    click.echo(f"Hotspots:   {project.hotspot_count}")
    for err in project.errors:
        click.echo(f"  ! {err}")


@main.command(name="vars")
@click.argument("file", type=click.Path(exists=True))
def list_vars(file: str) -> None:
    """List the variable table."""
    project = _load(file)
    for v in project.variables:
        click.echo(f"{v.name:<32} {v.value}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
def scenes(file: str) -> None:
    """List scenes with background and hotspot counts."""
    project = _load(file)
    for s in project.scenes:
        clickable = len(s.clickable_hotspots)
        click.echo(
            f"{s.number:3d}. @0x{s.offset:06X} {s.name or '-':<24} "
            f"{s.background_path or '-':<32} {clickable}/{len(s.hotspots)} hotspots"
        )


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.argument("number", type=int, metavar="N")
def scene(file: str, number: int) -> None:
    """Show one scene (1-based) with its hotspots and commands."""
    project = _load(file)
    s = _scene_arg(project, number)
    click.echo(f"=== Scene {s.number}: {s.name} ===")
    click.echo(f"Background: {s.background_path or '-'}")
    if s.wave_path:
        click.echo(f"Wave:       {s.wave_path}")
    for r in s.on_enter_commands:
        click.echo(f"  [enter] {r.describe()}")
    for h in s.hotspots:
        shape = "dangling" if h.shape is None else type(h.shape).__name__
        click.echo(f"  Hotspot {h.id} ({shape}) {h.source_image_path} @{h.x},{h.y},{h.z}")
        for r in h.trigger_commands:
            click.echo(f"    {r.describe()}")
        for r in h.hover_commands:
            click.echo(f"    (hover) {r.describe()}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.argument("pattern")
def search(file: str, pattern: str) -> None:
    """Find commands whose text contains PATTERN (case-insensitive)."""
    project = _load(file)
    needle = pattern.lower()
    hits = 0
    for s in project.scenes:
        for r in s.iter_records():
            if needle in r.text.lower():
                click.echo(f"Scene {s.number:3d} @0x{r.offset:06X}  {r.describe()}")
                hits += 1
    click.echo(f"{hits} match(es)")


@main.command()
@click.argument("file", type=click.Path(exists=True))
def conditions(file: str) -> None:
    """List IF commands and the variables they test."""
    from .engine.script import EngineError, parse_condition
    from .vnd.tags import CommandType

    project = _load(file)
    for s in project.scenes:
        for r in s.iter_records():
            if r.command_type != CommandType.IF:
                continue
            try:
                c = parse_condition(r.text)
                detail = f"{c.variable} {c.operator} {c.value}"
            except EngineError as e:
                detail = f"malformed: {e}"
            click.echo(f"Scene {s.number:3d}  {r.text}  [{detail}]")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--start-offset", type=int, default=None, help="Scan start (default 4400)")
@click.option("--extended", is_flag=True, help="Use the extended named-scene list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
def boundaries(file: str, start_offset: int | None, extended: bool, as_json: bool) -> None:
    """Run the heuristic scene boundary scan."""
    from .vnd.boundaries import (
        DEFAULT_PROFILE,
        DEFAULT_START_OFFSET,
        EXTENDED_PROFILE,
        scan_boundaries,
    )

    data = Path(file).read_bytes()
    profile = EXTENDED_PROFILE if extended else DEFAULT_PROFILE
    offset = DEFAULT_START_OFFSET if start_offset is None else start_offset
    found = scan_boundaries(data, offset, profile)
    if as_json:
        _write_json(
            [
                {"index": b.index, "position": b.position, "kind": b.kind.value,
                 "zeros": b.zeros, "content": b.content}
                for b in found
            ]
        )
        return
    click.echo(f"Detected {len(found)} scenes (best-effort)")
    for b in found:
        click.echo(f"{b.index:3d}. @{b.position:6d} [{b.kind.value:<5}] z={b.zeros:<3d} {b.content}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
def dump(file: str) -> None:
    """Dump the decoded project as JSON."""
    from .export.exporter import scene_to_dict

    project = _load(file)
    out = project.summary()
    out["scenes"] = [scene_to_dict(s) for s in project.scenes]
    _write_json(out)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.argument("number", type=int, metavar="N")
@click.option("--click", "click_at", type=(int, int), default=None, help="Click at X Y after entering")
def simulate(file: str, number: int, click_at: tuple[int, int] | None) -> None:
    """Enter scene N headless and print the effects it produces."""
    from .engine import Engine, EventType, RecordingEffects

    project = _load(file)
    target = _scene_arg(project, number)
    effects = RecordingEffects()

    async def run() -> None:
        engine = Engine(project, effects)
        await engine.go_to_scene(target.index)
        if click_at is not None:
            hotspot = await engine.click(*click_at)
            click.echo(f"Click {click_at}: {'hotspot %d' % hotspot.id if hotspot else 'nothing'}")
        engine.timers.stop_all()

    asyncio.run(run())
    for name, args in effects.calls:
        click.echo(f"{name}({', '.join(repr(a) for a in args)})")
    for event in effects.events:
        if event.type is EventType.ERROR:
            click.echo(f"! {event.data}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("-o", "--output", required=True, type=click.Path(), help="Output directory")
@click.option("--no-maps", is_flag=True, help="Skip hotspot map PNGs")
def extract(file: str, output: str, no_maps: bool) -> None:
    """Export metadata, scenes and hotspot maps."""
    from .export.exporter import export_all

    project = _load(file)
    xref = export_all(project, Path(output), export_maps=not no_maps)
    click.echo(f"Exported {len(project.scenes)} scenes, {len(xref)} hotspot maps to {output}")


if __name__ == "__main__":
    main()
