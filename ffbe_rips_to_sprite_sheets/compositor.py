import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from .bounds import Rect, content_rect
from .cgg import BlendMode, Frame, Part
from .cgs import AnimationStep
from .config import RipConfig, default_workers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositedStep:
    step: AnimationStep
    rect: Optional[Rect]
    image: Optional[Image.Image]

    @property
    def delay(self) -> int:
        return self.step.delay

    @property
    def is_empty(self) -> bool:
        return self.rect is None


def round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def extract_region(atlas: Image.Image, rect: Rect) -> Image.Image:
    # Image.crop returns a new image, the shared atlas stays untouched
    return atlas.crop(rect.box()).convert("RGBA")


def luminance_alpha(region: Image.Image) -> Image.Image:
    """Turn color brightness into coverage.

    Every pixel with non-zero alpha gets its color premultiplied by alpha and
    its alpha replaced by the mean of the original red, green and blue.
    """
    arr = np.asarray(region.convert("RGBA")).astype(np.float64) / 255.0
    r, g, b, a = arr[..., 0], arr[..., 1], arr[..., 2], arr[..., 3]
    visible = a != 0

    out = np.stack([r * a, g * a, b * a, (r + g + b) / 3.0], axis=-1)
    out = round_half_up(out * 255.0).clip(0, 255).astype(np.uint8)

    result = np.asarray(region.convert("RGBA")).copy()
    result[visible] = out[visible]
    return Image.fromarray(result, "RGBA")


def scale_alpha(region: Image.Image, factor: float) -> Image.Image:
    arr = np.asarray(region.convert("RGBA")).copy()
    alpha = arr[..., 3].astype(np.float64) * factor
    arr[..., 3] = round_half_up(alpha).clip(0, 255).astype(np.uint8)
    return Image.fromarray(arr, "RGBA")


def transform_part(atlas: Image.Image, part: Part) -> Image.Image:
    region = extract_region(atlas, part.source_rect)

    if part.blend_mode == BlendMode.LUMINANCE_ALPHA:
        region = luminance_alpha(region)

    if part.orientation.flip_x:
        region = region.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    if part.orientation.flip_y:
        region = region.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

    if part.rotation != 0:
        # authored angles are counter-clockwise, as is Image.rotate
        region = region.rotate(part.rotation, resample=Image.Resampling.NEAREST, expand=True)

    if part.opacity < 100:
        region = scale_alpha(region, part.opacity / 100.0)

    return region


def draw_over(canvas: Image.Image, region: Image.Image, position: Tuple[int, int]) -> None:
    """Alpha-composite ``region`` onto ``canvas``, clipping at the canvas edges."""
    x, y = position
    left = max(0, -x)
    top = max(0, -y)
    right = min(region.width, canvas.width - x)
    bottom = min(region.height, canvas.height - y)
    if right <= left or bottom <= top:
        return
    if (left, top, right, bottom) != (0, 0, region.width, region.height):
        region = region.crop((left, top, right, bottom))
    canvas.alpha_composite(region, (x + left, y + top))


def render_step(
    step: AnimationStep,
    frame: Optional[Frame],
    atlas: Image.Image,
    canvas_size: int,
) -> Image.Image:
    canvas = Image.new("RGBA", (canvas_size, canvas_size), (0, 0, 0, 0))
    if frame is None:
        return canvas

    center = canvas_size // 2
    step_x, step_y = step.offset
    for part in frame.parts:
        region = transform_part(atlas, part)
        part_x, part_y = part.offset
        draw_over(canvas, region, (center + step_x + part_x, center + step_y + part_y))
    return canvas


def lookup_frame(frames: Sequence[Optional[Frame]], step: AnimationStep) -> Optional[Frame]:
    if 0 <= step.frame_index < len(frames) and frames[step.frame_index] is not None:
        return frames[step.frame_index]
    logger.warning("Step on line %d refers to missing frame %d", step.line + 1, step.frame_index)
    return None


def composite_step(
    step: AnimationStep,
    frames: Sequence[Optional[Frame]],
    atlas: Image.Image,
    config: RipConfig,
) -> Optional[CompositedStep]:
    canvas = render_step(step, lookup_frame(frames, step), atlas, config.canvas_size)
    rect = content_rect(canvas)
    if rect.is_empty:
        if not config.include_empty:
            logger.debug("Step on line %d is empty, dropped", step.line + 1)
            return None
        return CompositedStep(step, None, None)
    return CompositedStep(step, rect, canvas.crop(rect.box()))


def composite_steps(
    frames: Sequence[Optional[Frame]],
    steps: Sequence[AnimationStep],
    atlas: Image.Image,
    config: RipConfig,
) -> List[CompositedStep]:
    atlas = atlas.convert("RGBA")
    atlas.load()
    with ThreadPoolExecutor(max_workers=config.workers or default_workers()) as executor:
        results = list(executor.map(lambda step: composite_step(step, frames, atlas, config), steps))
    kept = [result for result in results if result is not None]
    logger.info("Composited %d of %d steps", len(kept), len(steps))
    return kept
