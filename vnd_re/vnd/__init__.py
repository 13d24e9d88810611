"""Virtual Navigator 2.x project file (.vnd) decoder."""

from .cursor import ByteCursor, DecodeError, ImplausibleLength, OutOfBounds
from .tags import COMMAND_TYPE_NAMES, CommandType, Dialect
from .model import (
    ComplexRecord,
    DirectionalLinks,
    Header,
    Hotspot,
    MarkerRecord,
    NullRecord,
    Point,
    Polygon,
    ProjectModel,
    Record,
    Rectangle,
    Scene,
    ShapeRecord,
    SimpleRecord,
    Variable,
    WrapperRecord,
)
from .header import decode_header, decode_variables
from .records import UnrecognizedTag, decode_record, decode_record_resync, iter_records
from .hotspots import HotspotAssembler, decode_event_groups
from .dialect import detect_dialect
from .scene_table import decode_scene_table
from .scene_stream import decode_scene_stream
from .boundaries import BoundaryProfile, SceneBoundary, scan_boundaries
from .loader import VndFile, decode_project, load_project

__all__ = [
    "ByteCursor",
    "DecodeError",
    "ImplausibleLength",
    "OutOfBounds",
    "UnrecognizedTag",
    "COMMAND_TYPE_NAMES",
    "CommandType",
    "Dialect",
    "ComplexRecord",
    "DirectionalLinks",
    "Header",
    "Hotspot",
    "MarkerRecord",
    "NullRecord",
    "Point",
    "Polygon",
    "ProjectModel",
    "Record",
    "Rectangle",
    "Scene",
    "ShapeRecord",
    "SimpleRecord",
    "Variable",
    "WrapperRecord",
    "decode_header",
    "decode_variables",
    "decode_record",
    "decode_record_resync",
    "iter_records",
    "HotspotAssembler",
    "decode_event_groups",
    "detect_dialect",
    "decode_scene_table",
    "decode_scene_stream",
    "BoundaryProfile",
    "SceneBoundary",
    "scan_boundaries",
    "VndFile",
    "decode_project",
    "load_project",
]
