import pathlib

import pytest

from ffbe_rips_to_sprite_sheets.cgs import (
    AnimationStep,
    animation_name,
    decode_step,
    decode_steps,
    output_stem,
    read_steps,
)
from ffbe_rips_to_sprite_sheets.errors import MissingResource


def test_decode_step():
    assert decode_step("0,10,-5,3,", 2) == AnimationStep(0, (10, -5), 3, 2)


def test_extra_fields_are_ignored():
    assert decode_step("4,1,2,6,99,98,", 0) == AnimationStep(4, (1, 2), 6, 0)


@pytest.mark.parametrize("line", ["", "5,", "5", "1,2,", "1,2,3,", "1,x,3,4,"])
def test_short_or_bad_lines_are_no_step(line):
    assert decode_step(line, 0) is None


def test_decode_steps_skips_single_field_lines():
    steps = decode_steps("0,0,0,2,\n5,\n1,1,1,4,\n")
    assert [step.frame_index for step in steps] == [0, 1]
    assert [step.line for step in steps] == [0, 2]
    assert [step.delay for step in steps] == [2, 4]


def test_read_steps(tmp_path):
    path = tmp_path / "unit_idle_cgs_100.csv"
    path.write_text("0,0,0,2,\r\n1,3,4,5,\r\n", encoding="utf-8")
    steps = read_steps(path)
    assert steps[1] == AnimationStep(1, (3, 4), 5, 1)


def test_read_steps_missing_file(tmp_path):
    with pytest.raises(MissingResource):
        read_steps(tmp_path / "unit_idle_cgs_100.csv")


def test_names_from_cgs_path():
    path = pathlib.Path("in/unit_limit_atk_cgs_100.csv")
    assert animation_name(path) == "limit_atk"
    assert output_stem(path) == "unit_limit_atk_100"
    assert output_stem(pathlib.Path("steps.csv")) == "steps"
