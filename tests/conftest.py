import pytest
from PIL import Image

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


@pytest.fixture
def atlas():
    """8x4 atlas: red square on the left, blue square on the right."""
    image = Image.new("RGBA", (8, 4), RED)
    image.paste(Image.new("RGBA", (4, 4), BLUE), (4, 0))
    return image


def part_fields(x=0, y=0, orientation=0, blend=0, opacity=100, rotation=0,
                src=(0, 0, 4, 4), page=0):
    return [x, y, orientation, blend, opacity, rotation, *src, page]


def cgg_line(*parts, anchor=0):
    fields = [anchor, len(parts)]
    for part in parts:
        fields.extend(part)
    return ",".join(str(value) for value in fields) + ","
