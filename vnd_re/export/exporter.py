"""Export pipeline: JSON metadata and hotspot maps.

  <output>/
    metadata.json          - Project summary
    variables.json         - Initial variable values
    scenes.json            - Scenes with hotspots and decoded commands
    maps/
      scene_<n>_<name>.png - Palette image, pixel value = hotspot id + 1
    xref.json              - Scene -> exported files
"""

from __future__ import annotations

import colorsys
import json
import logging
from pathlib import Path
from typing import Any

from PIL import Image, ImageDraw

from ..vnd.model import Hotspot, ProjectModel, Rectangle, Record, Scene

log = logging.getLogger(__name__)

DEFAULT_SIZE = (640, 480)
MAX_MAP_HOTSPOTS = 255


def export_all(
    project: ProjectModel,
    output_dir: Path,
    *,
    export_maps: bool = True,
) -> dict[str, Any]:
    """Export everything from a decoded project.

    Returns a cross-reference index mapping scenes to exported files.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    xref: dict[str, Any] = {}

    _write_json(output_dir / "metadata.json", project.summary())
    _write_json(output_dir / "variables.json", {v.name: v.value for v in project.variables})
    _write_json(output_dir / "scenes.json", [scene_to_dict(s) for s in project.scenes])

    if export_maps:
        _export_maps(project, output_dir / "maps", xref)

    _write_json(output_dir / "xref.json", xref)
    log.info("Export complete: %s", output_dir)
    return xref


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def record_to_dict(record: Record) -> dict[str, Any]:
    out: dict[str, Any] = {"offset": record.offset, "type": type(record).__name__}
    if record.command_type is not None:
        out["command"] = record.command_name
        out["text"] = record.text
    return out


def hotspot_to_dict(hotspot: Hotspot) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": hotspot.id,
        "image": hotspot.source_image_path,
        "position": list(hotspot.position),
        "event_type": hotspot.event_type,
        "offset": hotspot.offset,
        "commands": [record_to_dict(r) for r in hotspot.trigger_commands],
        "hover": [record_to_dict(r) for r in hotspot.hover_commands],
        "shape": None,
    }
    if isinstance(hotspot.shape, Rectangle):
        s = hotspot.shape
        out["shape"] = {"type": "rect", "bounds": [s.left, s.top, s.right, s.bottom]}
    elif hotspot.shape is not None:
        out["shape"] = {"type": "polygon", "points": [[p.x, p.y] for p in hotspot.shape.points]}
    return out


def scene_to_dict(scene: Scene) -> dict[str, Any]:
    links = scene.links
    return {
        "index": scene.index,
        "name": scene.name,
        "flag": scene.flag,
        "background": scene.background_path,
        "wave": scene.wave_path,
        "properties": scene.properties,
        "offset": scene.offset,
        "links": {
            "forward": links.forward,
            "backward": links.backward,
            "left": links.left,
            "right": links.right,
        },
        "on_enter": [record_to_dict(r) for r in scene.on_enter_commands],
        "on_exit": [record_to_dict(r) for r in scene.on_exit_commands],
        "hotspots": [hotspot_to_dict(h) for h in scene.hotspots],
    }


# ---------------------------------------------------------------------------
# Hotspot maps
# ---------------------------------------------------------------------------


def _map_palette() -> list[int]:
    flat = [0, 0, 0]
    for i in range(1, 256):
        r, g, b = colorsys.hsv_to_rgb((i * 0.618034) % 1.0, 0.75, 0.95)
        flat += [int(r * 255), int(g * 255), int(b * 255)]
    return flat


def render_hotspot_map(scene: Scene, width: int, height: int) -> Image.Image:
    """Draw the clickable hotspots of *scene* into a palette image.

    Pixel value 0 is empty, value ``n`` is the hotspot with id ``n - 1``.
    Hotspots are drawn in z order so overlaps show the topmost one.
    """
    img = Image.new("P", (width, height), 0)
    img.putpalette(_map_palette())
    draw = ImageDraw.Draw(img)

    ordered = sorted(scene.clickable_hotspots, key=lambda h: h.z)
    for hotspot in ordered:
        if hotspot.id >= MAX_MAP_HOTSPOTS:
            log.warning("Scene %d: hotspot %d exceeds map palette", scene.index, hotspot.id)
            continue
        value = hotspot.id + 1
        shape = hotspot.shape
        if isinstance(shape, Rectangle):
            draw.rectangle([shape.left, shape.top, shape.right, shape.bottom], fill=value)
        elif shape is not None and len(shape.points) >= 3:
            draw.polygon([(p.x, p.y) for p in shape.points], fill=value)
    return img


def _export_maps(project: ProjectModel, out_dir: Path, xref: dict) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    width = project.header.width or DEFAULT_SIZE[0]
    height = project.header.height or DEFAULT_SIZE[1]

    for scene in project.scenes:
        if not scene.clickable_hotspots:
            continue
        filename = _safe_filename(f"scene_{scene.number:03d}_{scene.name or 'unnamed'}.png")
        filepath = out_dir / filename
        try:
            render_hotspot_map(scene, width, height).save(str(filepath), "PNG")
        except (OSError, ValueError) as e:
            log.warning("Failed to export hotspot map for scene %d: %s", scene.index, e)
            continue
        xref[f"scene:{scene.number}"] = {
            "map": str(filepath.relative_to(out_dir.parent)),
            "name": scene.name,
            "hotspots": [h.id for h in scene.clickable_hotspots],
        }
        log.debug("Exported hotspot map: %s", filename)


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding="utf-8")


def _safe_filename(name: str) -> str:
    """Sanitize a filename, replacing unsafe characters."""
    return "".join(c if c.isalnum() or c in "._-" else "_" for c in name)
