from io import BytesIO

import pytest
from PIL import Image

from stylist.images import ImageFile


def make_image_bytes(size=(64, 32), color=(200, 30, 30), fmt="PNG"):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_file():
    return ImageFile(data=make_image_bytes(), filename="product.png", mime_type="image/png")


@pytest.fixture
def jpeg_file():
    return ImageFile(
        data=make_image_bytes((48, 96), (20, 120, 220), "JPEG"),
        filename="model.jpg",
        mime_type="image/jpeg",
    )


@pytest.fixture
def image_bytes():
    return make_image_bytes
