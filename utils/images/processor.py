"""
Image processing utilities for the UX Audit service.

Screenshots and uploads are normalized to a fixed-size JPEG before being
sent to the vision model, so prompts stay small and predictable.
"""

import base64
import io
from PIL import Image, UnidentifiedImageError

from errors import ImageProcessingError

WHITE = (255, 255, 255)


def _to_rgb(image: Image.Image) -> Image.Image:
    """Flatten transparency onto white (JPEG has no alpha channel)."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        image = image.convert("RGBA")
        rgb_image = Image.new("RGB", image.size, WHITE)
        rgb_image.paste(image, mask=image.split()[3])  # Use alpha channel as mask
        return rgb_image
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def _open(image_bytes: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        return image
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageProcessingError("Failed to process uploaded image") from e


def normalize_screenshot(
    image_bytes: bytes, width: int = 1920, height: int = 1080, quality: int = 85
) -> bytes:
    """
    Scale an image to fit inside width x height and center it on a white
    canvas of exactly that size (letterboxing).

    Args:
        image_bytes: Raw screenshot bytes (any Pillow-readable format)
        width: Output width in pixels
        height: Output height in pixels
        quality: JPEG quality

    Returns:
        JPEG bytes of exactly width x height
    """
    image = _to_rgb(_open(image_bytes))

    scale = min(width / image.width, height / image.height)
    new_size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
    if new_size != image.size:
        image = image.resize(new_size, Image.Resampling.LANCZOS)

    canvas = Image.new("RGB", (width, height), WHITE)
    offset = ((width - image.width) // 2, (height - image.height) // 2)
    canvas.paste(image, offset)

    return _encode_jpeg(canvas, quality)


def process_uploaded_image(
    image_bytes: bytes, max_width: int = 1920, max_height: int = 1080, quality: int = 85
) -> bytes:
    """
    Fit an uploaded image inside max_width x max_height without enlarging it
    and re-encode as JPEG.

    Raises:
        ImageProcessingError: if the bytes are not a readable image
    """
    image = _to_rgb(_open(image_bytes))

    # thumbnail() keeps aspect ratio and never upscales
    image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)

    try:
        return _encode_jpeg(image, quality)
    except OSError as e:
        raise ImageProcessingError("Failed to process uploaded image") from e


def to_base64(image_bytes: bytes) -> str:
    """Return base64 encoded string of the image bytes."""
    return base64.b64encode(image_bytes).decode("utf-8")


def to_data_url(image_base64: str) -> str:
    return f"data:image/jpeg;base64,{image_base64}"
