"""Decoder for the ``unit_<anim>_cgs_<id>.csv`` sequence format.

One animation step per line: ``frameIndex,xPos,yPos,delay,`` where the delay
is counted in 1/60 s ticks.
"""
import logging
import pathlib
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .cgg import parse_int, split_fields
from .errors import MalformedLine, MissingResource

logger = logging.getLogger(__name__)

STEP_FIELD_COUNT = 4
CGS_NAME_PATTERN = re.compile(r"^unit_(?P<anim>.+)_cgs_(?P<unit_id>\d+)\.csv$")


@dataclass(frozen=True)
class AnimationStep:
    frame_index: int
    offset: Tuple[int, int]
    delay: int
    line: int = 0


def decode_step(line: str, row: int) -> Optional[AnimationStep]:
    fields = split_fields(line)
    if len(fields) < 2:
        logger.debug("Line %d has fewer than 2 fields, no step", row + 1)
        return None
    try:
        if len(fields) < STEP_FIELD_COUNT:
            raise MalformedLine(f"Expected {STEP_FIELD_COUNT} fields, got {len(fields)}", row)
        frame_index, x, y, delay = (parse_int(value, row) for value in fields[:STEP_FIELD_COUNT])
    except MalformedLine as exc:
        logger.warning("Skipping step: %s", exc)
        return None
    return AnimationStep(frame_index, (x, y), delay, row)


def decode_steps(text: str) -> List[AnimationStep]:
    steps = []
    for row, line in enumerate(text.splitlines()):
        step = decode_step(line, row)
        if step is not None:
            steps.append(step)
    return steps


def read_steps(path: pathlib.Path) -> List[AnimationStep]:
    logger.info("Loading %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MissingResource(f"Cannot read sequence data {path}: {exc}") from exc
    return decode_steps(text)


def animation_name(path: pathlib.Path) -> str:
    match = CGS_NAME_PATTERN.match(path.name)
    if match:
        return match.group("anim")
    return path.stem


def output_stem(path: pathlib.Path) -> str:
    # unit_idle_cgs_100.csv -> unit_idle_100
    action, sep, unit_id = path.stem.partition("_cgs_")
    if not sep:
        return path.stem
    return f"{action}_{unit_id}"
