"""Segment slicer: turns split points into standalone WAV fragments."""

import logging
import math
from typing import Callable, Sequence

import numpy as np

from prepforge.editors.wav import encode_wav
from prepforge.errors import InvalidRange
from prepforge.models import SampleBuffer, Segment

logger = logging.getLogger(__name__)

# Pieces shorter than this come from rounding, not from a real cut
MIN_SEGMENT_SECONDS = 0.1


def slice_segment(buffer: SampleBuffer, start: float, end: float) -> bytes:
    """Encode ``[start, end)`` of *buffer* as a WAV file.

    Reads past the last sample are filled with silence so that an ``end``
    nudged beyond the buffer by float rounding still works.
    """
    if start < 0 or end <= start:
        raise InvalidRange(f"invalid slice: start={start} end={end}")

    rate = buffer.sample_rate
    frame_count = math.floor((end - start) * rate)
    offset = math.floor(start * rate)

    out = np.zeros((buffer.channel_count, frame_count), dtype=np.float32)
    available = max(0, min(frame_count, buffer.frame_count - offset))
    if available:
        out[:, :available] = buffer.samples[:, offset:offset + available]

    return encode_wav(out, rate)


def slice_all(
    buffer: SampleBuffer,
    splits: Sequence[float],
    on_progress: Callable[[float], None] | None = None,
) -> list[Segment]:
    """Cut *buffer* at each of the ascending *splits* and encode every piece.

    The first piece starts at 0 and the last ends at the buffer's duration.
    Pieces shorter than 0.1s are dropped.
    """
    points = [0.0, *splits, buffer.duration]
    pairs = list(zip(points, points[1:]))

    segments: list[Segment] = []
    for i, (start, end) in enumerate(pairs):
        if end - start < MIN_SEGMENT_SECONDS:
            logger.debug("Dropping %.3fs sliver at %.3fs", end - start, start)
            continue
        segments.append(Segment(start=start, end=end, data=slice_segment(buffer, start, end)))
        if on_progress:
            on_progress((i + 1) / len(pairs))

    logger.info("Sliced %d segment(s) from %.2fs of audio", len(segments), buffer.duration)
    return segments
