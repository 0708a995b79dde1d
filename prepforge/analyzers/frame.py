"""Reference-frame extraction: find the last frame of a clip that is not black.

AI-generated clips often fade to black in their final moments, so the search
starts just before the end and steps backwards until the picture is bright
enough. Close to the start of the clip it gives up and takes whatever frame
it has, so an all-black video still terminates.
"""

import logging
from typing import Callable

import numpy as np

from prepforge.editors.still import encode_png
from prepforge.errors import DecodeError, ProbeCancelled
from prepforge.models import ExtractedFrame, SeekableVideo, VideoFrameCandidate

logger = logging.getLogger(__name__)

END_OFFSET = 0.05
BACKOFF_STEP = 0.1
BRIGHTNESS_THRESHOLD = 10.0
GIVE_UP_TIME = 0.5


def average_brightness(pixels: np.ndarray) -> float:
    """Mean over all pixels of the per-pixel (R + G + B) / 3, on a 0-255 scale."""
    if pixels.size == 0:
        raise DecodeError("Decoded frame has no pixels")
    return float(pixels[..., :3].mean(dtype=np.float64))


def extract_reference_frame(
    video: SeekableVideo,
    should_cancel: Callable[[], bool] | None = None,
) -> ExtractedFrame:
    """Seek backwards from the end of *video* until a frame is bright enough.

    A frame is accepted when its average brightness reaches 10, or
    unconditionally once the cursor is at or before 0.5s. Each attempt is a
    blocking seek on *video*. *should_cancel* is polled between attempts and
    raises ProbeCancelled when it returns True.
    """
    t = max(0.0, video.duration - END_OFFSET)
    attempts = 0

    while True:
        video.seek(t)
        candidate = VideoFrameCandidate(timestamp=t, pixels=video.read_current_frame_pixels())
        attempts += 1

        brightness = average_brightness(candidate.pixels)
        if brightness >= BRIGHTNESS_THRESHOLD or t <= GIVE_UP_TIME:
            break

        logger.debug("Frame at %.2fs too dark (%.1f), backing off", t, brightness)
        if should_cancel is not None and should_cancel():
            raise ProbeCancelled(f"Frame search cancelled at {t:.2f}s")
        t -= BACKOFF_STEP

    logger.info(
        "Accepted reference frame at %.2fs (brightness %.1f) after %d attempt(s)",
        candidate.timestamp, brightness, attempts,
    )
    return ExtractedFrame(timestamp=candidate.timestamp, image_bytes=encode_png(candidate.pixels))
