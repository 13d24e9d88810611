"""Export of decoded projects to JSON and PNG."""

from .exporter import export_all, render_hotspot_map, scene_to_dict

__all__ = ["export_all", "render_hotspot_map", "scene_to_dict"]
