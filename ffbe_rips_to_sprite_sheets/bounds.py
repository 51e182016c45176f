from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
from PIL import Image

ALPHA_MASK = 0xFF000000


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def box(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.right, self.bottom)

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def pack_argb(image: Image.Image) -> np.ndarray:
    """Return the pixels of ``image`` as a 2D array of 0xAARRGGBB values."""
    arr = np.asarray(image.convert("RGBA"), dtype=np.uint32)
    return (arr[..., 3] << 24) | (arr[..., 0] << 16) | (arr[..., 1] << 8) | arr[..., 2]


def alpha_channel(image: Image.Image) -> np.ndarray:
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return np.asarray(image.getchannel("A"))


def masked_pixels(image: Image.Image, mask: int, color: int) -> Tuple[np.ndarray, int]:
    mask &= 0xFFFFFFFF
    color &= 0xFFFFFFFF
    if mask & 0x00FFFFFF == 0 and color & ~mask & 0xFFFFFFFF == 0:
        # only alpha bits matter, scan the 8-bit channel
        return alpha_channel(image) & np.uint8(mask >> 24), color >> 24
    return pack_argb(image) & np.uint32(mask), color


def get_color_bounds_rect(image: Image.Image, mask: int, color: int, find_matching: bool) -> Rect:
    """Bounds of every pixel whose ``value & mask`` equals ``color`` (or differs
    from it when ``find_matching`` is false).

    Mirrors the BitmapData.getColorBoundsRect contract: when nothing is kept the
    rectangle starts at the canvas' width/height with zero size.
    """
    w, h = image.size
    if w == 0 or h == 0:
        return Rect(w, h, 0, 0)

    masked, target = masked_pixels(image, mask, color)
    if find_matching:
        keep = masked == target
    else:
        keep = masked != target

    if not np.any(keep):
        return Rect(w, h, 0, 0)

    rows = np.any(keep, axis=1)
    cols = np.any(keep, axis=0)

    top = int(np.argmax(rows))
    bottom = int(h - 1 - np.argmax(rows[::-1]))
    left = int(np.argmax(cols))
    right = int(w - 1 - np.argmax(cols[::-1]))

    return Rect(left, top, max(0, right - left + 1), max(0, bottom - top + 1))


def content_rect(image: Image.Image) -> Rect:
    return get_color_bounds_rect(image, ALPHA_MASK, 0, False)
