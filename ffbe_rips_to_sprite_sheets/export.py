"""Writers for the finished sheet, its JSON sidecar and the animated GIF."""
import json
import logging
import pathlib
from typing import List, Sequence

import numpy as np
from PIL import Image

from .layout import SheetLayout

logger = logging.getLogger(__name__)

TICKS_PER_SECOND = 60


def save_sheet(image: Image.Image, path: pathlib.Path) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format="PNG")
    logger.info("Saved %s (%dx%d)", path, image.width, image.height)
    return path


def save_layout_json(layout: SheetLayout, path: pathlib.Path) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(layout.to_json(), handle, indent=2)
    logger.info("Saved %s", path)
    return path


def ticks_to_ms(delay: int) -> int:
    return int(round(delay / TICKS_PER_SECOND * 1000))


def key_transparent(frame: Image.Image, threshold: int = 128) -> Image.Image:
    """GIF only has one transparent palette entry: snap alpha to 0 or 255."""
    arr = np.asarray(frame.convert("RGBA")).copy()
    hidden = arr[..., 3] < threshold
    arr[hidden] = 0
    arr[~hidden, 3] = 255
    return Image.fromarray(arr, "RGBA")


def save_gif(
    frames: Sequence[Image.Image],
    delays: Sequence[int],
    path: pathlib.Path,
    threshold: int = 128,
    loop: int = 0,
) -> pathlib.Path:
    if not frames:
        raise ValueError("at least one frame is required")
    if len(delays) != len(frames):
        raise ValueError("every frame needs a delay")

    keyed: List[Image.Image] = [key_transparent(frame, threshold) for frame in frames]
    # GIF durations are whole milliseconds, 10 at least
    durations = [max(10, ticks_to_ms(delay)) for delay in delays]

    path.parent.mkdir(parents=True, exist_ok=True)
    # Pillow folds identical consecutive frames into one and sums their durations,
    # so n_frames of the result can be lower than len(frames)
    keyed[0].save(
        path,
        format="GIF",
        save_all=True,
        append_images=keyed[1:],
        duration=durations,
        loop=loop,
        disposal=2,
    )
    logger.info("Saved animated GIF %s (%d frames)", path, len(keyed))
    return path
