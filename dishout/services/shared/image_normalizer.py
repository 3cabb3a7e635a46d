import io
import base64
import binascii
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from ...errors import ProcessingError

JPEG_MIME = "image/jpeg"
DEFAULT_QUALITY = 0.85


def normalize_image(image_bytes: bytes, quality: float = DEFAULT_QUALITY) -> str:
    """
    Re-encode an arbitrary image as a JPEG data URI.

    The image is painted onto an opaque white canvas of its natural size so
    transparent regions come out white instead of black.

    Args:
        image_bytes: Raw bytes of the uploaded file
        quality: JPEG quality factor in [0, 1]

    Returns:
        ``data:image/jpeg;base64,...``

    Raises:
        ProcessingError: If the image cannot be decoded, drawn or encoded
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise ProcessingError("Failed to load image") from e

    try:
        image = ImageOps.exif_transpose(image)
        rgba = image.convert("RGBA")
        canvas = Image.new("RGB", rgba.size, (255, 255, 255))
        canvas.paste(rgba, (0, 0), rgba)
    except (OSError, ValueError, MemoryError) as e:
        raise ProcessingError("Canvas context unavailable") from e

    buf = io.BytesIO()
    try:
        canvas.save(buf, format="JPEG", quality=int(round(quality * 100)))
    except (OSError, ValueError) as e:
        # libjpeg caps each side at 65535 px
        raise ProcessingError("Failed to encode image") from e
    return f"data:{JPEG_MIME};base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def split_data_uri(data_uri: str) -> Tuple[str, str]:
    """Split ``data:<mime>;base64,<payload>`` into ``(mime, payload)``."""
    header, sep, payload = (data_uri or "").partition(",")
    if not sep or not header.startswith("data:"):
        raise ProcessingError("Not a data URI")
    mime = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
    return mime, payload


def decode_data_uri(data_uri: str) -> bytes:
    _, payload = split_data_uri(data_uri)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ProcessingError("Malformed base64 payload") from e
