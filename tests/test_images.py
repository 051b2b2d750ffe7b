import io

import pytest
from PIL import Image

from errors import ImageProcessingError
from utils.images.processor import normalize_screenshot, process_uploaded_image, to_base64, to_data_url


def _image_bytes(size, mode="RGB", fmt="PNG", color=(200, 30, 30)):
    if mode == "RGBA":
        color = color + (0,)
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def _open(data):
    return Image.open(io.BytesIO(data))


@pytest.mark.parametrize("size", [(3840, 1000), (800, 2000), (1920, 1080), (100, 50)])
def test_normalize_screenshot_exact_size(size):
    result = _open(normalize_screenshot(_image_bytes(size)))

    assert result.format == "JPEG"
    assert result.size == (1920, 1080)


def test_normalize_screenshot_letterboxes_on_white():
    result = _open(normalize_screenshot(_image_bytes((960, 1080)), width=1920, height=1080)).convert("RGB")

    left, _, _ = result.getpixel((10, 540))
    middle = result.getpixel((960, 540))
    assert left > 245
    assert middle[0] > 150 and middle[1] < 80


@pytest.mark.parametrize(
    "size,expected",
    [
        ((3840, 2160), (1920, 1080)),
        ((1000, 3000), (360, 1080)),
        ((640, 480), (640, 480)),
    ],
)
def test_process_uploaded_image_fits_without_upscaling(size, expected):
    result = _open(process_uploaded_image(_image_bytes(size)))

    assert result.format == "JPEG"
    assert result.size == expected


def test_transparent_upload_flattens_to_white():
    result = _open(process_uploaded_image(_image_bytes((50, 50), mode="RGBA"))).convert("RGB")
    assert all(channel > 245 for channel in result.getpixel((25, 25)))


def test_invalid_upload_raises():
    with pytest.raises(ImageProcessingError):
        process_uploaded_image(b"definitely not an image")


def test_base64_helpers():
    assert to_base64(b"hello") == "aGVsbG8="
    assert to_data_url("aGVsbG8=") == "data:image/jpeg;base64,aGVsbG8="


def test_decompression_bomb_upload_raises(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ImageProcessingError):
        process_uploaded_image(_image_bytes((30, 30)))
