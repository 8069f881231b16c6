import base64
import math
import re

_DATA_URL_RE = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,", re.IGNORECASE)


def split_data_url(image_base64: str) -> tuple[str, str]:
    """Return (mime_type, bare base64) for a data URL or a bare base64 string."""
    match = _DATA_URL_RE.match(image_base64)
    if match:
        return match.group(1).lower(), image_base64[match.end():]
    return "image/jpeg", image_base64


def decoded_size(image_base64: str) -> int:
    """Approximate decoded byte count from the base64 length (4/3 expansion)."""
    _, data = split_data_url(image_base64)
    return math.ceil(len(data.strip()) * 3 / 4)


def decode_image(image_base64: str) -> tuple[str, bytes]:
    """(mime_type, image bytes); raises ValueError on malformed base64."""
    mime_type, data = split_data_url(image_base64)
    # Line-wrapped base64 is still valid
    data = "".join(data.split())
    if not data:
        raise ValueError("image data is empty")
    return mime_type, base64.b64decode(data, validate=True)
