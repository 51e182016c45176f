"""Rebuild unit animation strips, sheets and GIFs from cgg/cgs rips."""
from .bounds import Rect, content_rect, get_color_bounds_rect
from .cgg import BlendMode, Frame, Orientation, Part, decode_frames, read_frames
from .cgs import AnimationStep, decode_steps, read_steps
from .compositor import CompositedStep, composite_step, composite_steps
from .config import RipConfig, build_config
from .errors import (
    DecodeError,
    EmptyResultSet,
    InvalidOrientationCode,
    MalformedLine,
    MissingResource,
    RipError,
)
from .layout import SheetLayout, build_sheet

__version__ = "0.1.0"

__all__ = [
    "AnimationStep",
    "BlendMode",
    "CompositedStep",
    "DecodeError",
    "EmptyResultSet",
    "Frame",
    "InvalidOrientationCode",
    "MalformedLine",
    "MissingResource",
    "Orientation",
    "Part",
    "Rect",
    "RipConfig",
    "RipError",
    "SheetLayout",
    "build_config",
    "build_sheet",
    "composite_step",
    "composite_steps",
    "content_rect",
    "decode_frames",
    "decode_steps",
    "get_color_bounds_rect",
    "read_frames",
    "read_steps",
]
