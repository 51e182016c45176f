import json

import pytest
from PIL import Image

from conftest import BLUE, RED
from ffbe_rips_to_sprite_sheets.bounds import Rect
from ffbe_rips_to_sprite_sheets.export import (
    key_transparent,
    save_gif,
    save_layout_json,
    save_sheet,
    ticks_to_ms,
)
from ffbe_rips_to_sprite_sheets.layout import SheetLayout


def make_layout():
    return SheetLayout(
        frame_rect=Rect(95, 90, 20, 30),
        columns=2,
        rows=1,
        image_width=40,
        image_height=30,
        frame_delays=(6, 12),
        positions=((0, 0), (20, 0)),
    )


@pytest.mark.parametrize("ticks, ms", [(6, 100), (60, 1000), (1, 17), (0, 0)])
def test_ticks_to_ms(ticks, ms):
    assert ticks_to_ms(ticks) == ms


def test_key_transparent():
    frame = Image.new("RGBA", (3, 1), (0, 0, 0, 0))
    frame.putpixel((0, 0), (10, 20, 30, 127))
    frame.putpixel((1, 0), (10, 20, 30, 128))
    keyed = key_transparent(frame, 128)
    assert keyed.getpixel((0, 0)) == (0, 0, 0, 0)
    assert keyed.getpixel((1, 0)) == (10, 20, 30, 255)
    assert keyed.getpixel((2, 0)) == (0, 0, 0, 0)


def test_save_sheet_creates_directories(tmp_path):
    path = save_sheet(Image.new("RGBA", (4, 2), RED), tmp_path / "out" / "unit_idle_1.png")
    with Image.open(path) as image:
        assert image.size == (4, 2)


def test_save_layout_json(tmp_path):
    path = save_layout_json(make_layout(), tmp_path / "unit_idle_1.json")
    payload = json.loads(path.read_text("utf-8"))
    assert payload == {
        "frameDelays": [6, 12],
        "frameRect": {"x": 95, "y": 90, "width": 20, "height": 30},
        "imageWidth": 40,
        "imageHeight": 30,
    }


def test_save_gif(tmp_path):
    frames = [Image.new("RGBA", (8, 8), (0, 0, 0, 0)) for _ in range(3)]
    frames[0].paste(Image.new("RGBA", (4, 4), RED), (0, 0))
    frames[1].paste(Image.new("RGBA", (4, 4), BLUE), (4, 4))
    frames[2].paste(Image.new("RGBA", (4, 4), RED), (4, 0))
    path = save_gif(frames, [6, 12, 3], tmp_path / "unit_idle_1.gif")
    with Image.open(path) as gif:
        assert gif.format == "GIF"
        assert gif.is_animated
        assert gif.n_frames == 3
        assert gif.info["duration"] == 100


def test_save_gif_requires_frames(tmp_path):
    with pytest.raises(ValueError):
        save_gif([], [], tmp_path / "empty.gif")
    with pytest.raises(ValueError):
        save_gif([Image.new("RGBA", (1, 1))], [], tmp_path / "mismatch.gif")


def test_save_gif_keeps_total_duration_of_repeated_frames(tmp_path):
    frame = Image.new("RGBA", (4, 4), RED)
    frames = [frame, frame.copy(), Image.new("RGBA", (4, 4), BLUE)]
    path = save_gif(frames, [6, 6, 3], tmp_path / "unit_idle_1.gif")
    with Image.open(path) as gif:
        total = 0
        for index in range(gif.n_frames):
            gif.seek(index)
            total += gif.info["duration"]
        assert gif.n_frames <= 3
    assert total == 100 + 100 + 50
