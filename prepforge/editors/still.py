"""Still-image encoder for extracted video frames."""

import io

import numpy as np
from PIL import Image

from prepforge.errors import EncodeFailure


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an (h, w, 4) RGBA or (h, w, 3) RGB uint8 array as PNG bytes."""
    pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4) or 0 in pixels.shape:
        raise EncodeFailure(f"Cannot encode frame with shape {pixels.shape}")

    buf = io.BytesIO()
    try:
        Image.fromarray(pixels).save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeFailure(f"PNG encode failed: {e}") from e
    return buf.getvalue()
