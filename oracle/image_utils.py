"""Screenshot encoding for image-mode requests."""

from __future__ import annotations

import base64
import io
from typing import Tuple

from PIL import Image


def to_jpeg(image_bytes: bytes, *, max_width: int = 1920, quality: int = 90) -> bytes:
    """Re-encode any screenshot as RGB JPEG, downscaling when wider than max_width."""
    img = Image.open(io.BytesIO(image_bytes))
    w, h = img.size
    if max_width and w > max_width:
        ratio = max_width / float(w)
        img = img.resize((max_width, max(1, int(h * ratio))), Image.LANCZOS)
    if img.mode == "RGBA":
        bg = Image.new("RGB", img.size, (255, 255, 255))
        bg.paste(img, mask=img.split()[3])
        img = bg
    elif img.mode != "RGB":
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=int(quality), optimize=True)
    return buf.getvalue()


def to_data_url(image_bytes: bytes, *, max_width: int = 1920, quality: int = 90) -> Tuple[str, int]:
    """Return (data URL, encoded size in bytes)."""
    jpeg = to_jpeg(image_bytes, max_width=max_width, quality=quality)
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii"), len(jpeg)
