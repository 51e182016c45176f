import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from PIL import Image

from .bounds import Rect
from .compositor import CompositedStep
from .errors import EmptyResultSet

logger = logging.getLogger(__name__)

FRAME_MARGIN = 5


@dataclass(frozen=True)
class SheetLayout:
    frame_rect: Rect
    columns: int
    rows: int
    image_width: int
    image_height: int
    frame_delays: Tuple[int, ...]
    positions: Tuple[Tuple[int, int], ...]

    @property
    def mode(self) -> str:
        return "strip" if self.rows == 1 else "sheet"

    def to_json(self) -> Dict[str, Any]:
        return {
            "frameDelays": list(self.frame_delays),
            "frameRect": self.frame_rect.to_dict(),
            "imageWidth": self.image_width,
            "imageHeight": self.image_height,
        }


def union_rect(rects: Iterable[Optional[Rect]]) -> Rect:
    left = top = right = bottom = None
    for rect in rects:
        if rect is None or rect.is_empty:
            continue
        if left is None:
            left, top, right, bottom = rect.x, rect.y, rect.right, rect.bottom
            continue
        left = min(left, rect.x)
        top = min(top, rect.y)
        right = max(right, rect.right)
        bottom = max(bottom, rect.bottom)
    if left is None:
        raise EmptyResultSet("No animation step produced any visible pixel.")
    return Rect(left, top, right - left, bottom - top)


def frame_rect(union: Rect, margin: int = FRAME_MARGIN) -> Rect:
    return Rect(union.x - margin, union.y - margin, union.width + margin * 2, union.height + margin * 2)


def grid_shape(count: int, columns: int) -> Tuple[int, int]:
    if columns == 0 or columns >= count:
        return count, 1
    return columns, math.ceil(count / columns)


def crop_to_frame(composited: CompositedStep, rect: Rect) -> Image.Image:
    """The step's pixels as if its full working canvas were cropped to ``rect``."""
    frame = Image.new("RGBA", (rect.width, rect.height), (0, 0, 0, 0))
    if composited.image is not None and composited.rect is not None:
        frame.paste(composited.image, (composited.rect.x - rect.x, composited.rect.y - rect.y))
    return frame


def build_sheet(
    composited: Sequence[CompositedStep],
    columns: int = 0,
    divider: int = 0,
    margin: int = FRAME_MARGIN,
) -> Tuple[Image.Image, SheetLayout, List[Image.Image]]:
    shared = frame_rect(union_rect(step.rect for step in composited), margin)
    columns, rows = grid_shape(len(composited), columns)

    sheet_width = columns * shared.width + divider * (columns - 1)
    sheet_height = rows * shared.height + divider * (rows - 1)
    logger.info(
        "Making %s: %d frames of %dx%d in %d columns x %d rows",
        "strip" if rows == 1 else "sheet", len(composited), shared.width, shared.height, columns, rows,
    )
    sheet = Image.new("RGBA", (sheet_width, sheet_height), (0, 0, 0, 0))

    frames: List[Image.Image] = []
    positions: List[Tuple[int, int]] = []
    for index, step in enumerate(composited):
        frame = crop_to_frame(step, shared)
        row = index // columns
        col = index % columns
        position = (col * (shared.width + divider), row * (shared.height + divider))
        sheet.paste(frame, position)
        frames.append(frame)
        positions.append(position)

    layout = SheetLayout(
        frame_rect=shared,
        columns=columns,
        rows=rows,
        image_width=sheet_width,
        image_height=sheet_height,
        frame_delays=tuple(step.delay for step in composited),
        positions=tuple(positions),
    )
    return sheet, layout, frames
