from io import BytesIO

import pytest
from PIL import Image

from huddle.core.errors import ValidationFailed
from huddle.modules.images.resize import MB, resize_image, validate_image_file


def make_png(width, height):
    out = BytesIO()
    Image.new("RGBA", (width, height), (200, 30, 30, 255)).save(out, format="PNG")
    return out.getvalue()


def test_wide_images_are_downscaled_to_jpeg():
    result = resize_image(make_png(2400, 1200), "image/png", max_width=1200, quality=80)
    assert result.content_type == "image/jpeg"
    assert result.extension == "jpg"
    with Image.open(BytesIO(result.content)) as image:
        assert image.size == (1200, 600)
        assert image.format == "JPEG"


def test_narrow_images_are_untouched():
    content = make_png(800, 600)
    result = resize_image(content, "image/png", max_width=1200)
    assert result.content == content
    assert result.content_type == "image/png"
    assert result.extension == "png"


def test_garbage_is_rejected():
    with pytest.raises(ValidationFailed):
        resize_image(b"definitely not an image", "image/png")


def test_validate_image_file():
    validate_image_file("image/webp", 10, MB)
    with pytest.raises(ValidationFailed):
        validate_image_file("image/png", 0, MB)
    with pytest.raises(ValidationFailed):
        validate_image_file("application/pdf", 10, MB)
    with pytest.raises(ValidationFailed) as exc:
        validate_image_file("image/jpeg", MB + 1, MB)
    assert exc.value.code == "validation"
    assert "1MB" in exc.value.detail
