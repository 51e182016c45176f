"""Decoder for the ``unit_cgg_<id>.csv`` frame-template format.

Each line describes one logical frame::

    anchor,partCount,<part 0 fields>,<part 1 fields>,...,

and every part carries eleven fields::

    xPos,yPos,orientation,blendMode,opacity,rotation,srcX,srcY,srcW,srcH,pageID

Frames are indexed by their line number, which is what ``cgs`` steps refer to.
"""
import enum
import logging
import pathlib
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .bounds import Rect
from .errors import InvalidOrientationCode, MalformedLine, MissingResource

logger = logging.getLogger(__name__)

PART_FIELD_COUNT = 11


class Orientation(enum.IntEnum):
    NONE = 0
    FLIP_X = 1
    FLIP_Y = 2
    FLIP_XY = 3

    @property
    def flip_x(self) -> bool:
        return self in (Orientation.FLIP_X, Orientation.FLIP_XY)

    @property
    def flip_y(self) -> bool:
        return self in (Orientation.FLIP_Y, Orientation.FLIP_XY)


class BlendMode(enum.IntEnum):
    NORMAL = 0
    LUMINANCE_ALPHA = 1


@dataclass(frozen=True)
class Part:
    source_rect: Rect
    offset: Tuple[int, int]
    orientation: Orientation
    blend_mode: int
    opacity: int
    rotation: int
    page_id: int
    layer: int = 0


@dataclass(frozen=True)
class Frame:
    index: int
    anchor: int
    parts: Tuple[Part, ...]


def split_fields(line: str) -> List[str]:
    fields = line.split(",")
    # every record ends with a separator, leaving an empty last field
    if fields and not fields[-1].strip():
        fields.pop()
    return fields


def parse_int(value: str, line: int, part: Optional[int] = None) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise MalformedLine(f"Not an integer: {value!r}", line, part) from exc


def parse_orientation(code: int, line: int, part: int) -> Orientation:
    try:
        return Orientation(code)
    except ValueError as exc:
        raise InvalidOrientationCode(code, line, part) from exc


def decode_part(fields: Sequence[str], line: int, part: int) -> Part:
    x, y, orientation, blend_mode, opacity, rotation, src_x, src_y, src_w, src_h, page_id = (
        parse_int(value, line, part) for value in fields[:PART_FIELD_COUNT]
    )
    if src_w < 0 or src_h < 0:
        raise MalformedLine(f"Negative source size {src_w}x{src_h}", line, part)
    return Part(
        source_rect=Rect(src_x, src_y, src_w, src_h),
        offset=(x, y),
        orientation=parse_orientation(orientation, line, part),
        blend_mode=blend_mode,
        opacity=opacity,
        rotation=rotation,
        page_id=page_id,
    )


def paint_order(parts: Sequence[Part]) -> Tuple[Part, ...]:
    """Turn parts from file order into draw order.

    The file lists the topmost part first. Drawing happens front to back, so
    the list is reversed once here and ``layer`` records the final position:
    the part listed last in the file is drawn first (bottom), the part listed
    first is drawn last (top).
    """
    return tuple(replace(part, layer=layer) for layer, part in enumerate(reversed(parts)))


def decode_frame(line: str, index: int) -> Optional[Frame]:
    fields = split_fields(line)
    if len(fields) < 2:
        return None

    anchor = parse_int(fields[0], index)
    count = parse_int(fields[1], index)
    rest = fields[2:]

    if count < 0:
        raise MalformedLine(f"Negative part count {count}", index)
    if count == 0:
        if rest:
            raise MalformedLine(f"{len(rest)} fields left over for zero parts", index)
        return Frame(index, anchor, ())
    if len(rest) % count != 0 or len(rest) // count < PART_FIELD_COUNT:
        raise MalformedLine(
            f"{len(rest)} part fields cannot be split into {count} parts of {PART_FIELD_COUNT}",
            index,
        )

    size = len(rest) // count
    parts = [decode_part(rest[i * size:(i + 1) * size], index, i) for i in range(count)]
    return Frame(index, anchor, paint_order(parts))


def decode_frames(text: str, skip_invalid: bool = False) -> List[Optional[Frame]]:
    frames: List[Optional[Frame]] = []
    for index, line in enumerate(text.splitlines()):
        try:
            frame = decode_frame(line, index)
        except InvalidOrientationCode as exc:
            if not skip_invalid:
                raise
            logger.error("Skipping frame: %s", exc)
            frame = None
        except MalformedLine as exc:
            logger.warning("Skipping frame: %s", exc)
            frame = None
        else:
            if frame is None:
                logger.debug("Line %d has fewer than 2 fields, no frame", index + 1)
        frames.append(frame)
    return frames


def read_frames(path: pathlib.Path, skip_invalid: bool = False) -> List[Optional[Frame]]:
    logger.info("Loading %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MissingResource(f"Cannot read frame data {path}: {exc}") from exc
    frames = decode_frames(text, skip_invalid)
    logger.debug("Decoded %d frames from %s", sum(frame is not None for frame in frames), path)
    return frames
