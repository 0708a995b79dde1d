"""Waveform summarizer: min/max peak pairs for drawing a sample range."""

import math

from prepforge.errors import InvalidRange
from prepforge.models import PeakPair, SampleBuffer


def summarize(
    buffer: SampleBuffer,
    start: float,
    end: float,
    channel: int = 0,
    width: int = 800,
) -> list[PeakPair]:
    """Decimate ``[start, end)`` of one channel to ``width`` peak pairs.

    Each column covers ``ceil(samples / width)`` consecutive samples and
    reports their true minimum and maximum. Columns past the end of the
    range report (0, 0).
    """
    if width <= 0:
        raise InvalidRange(f"width must be positive, got {width}")
    if not 0 <= channel < buffer.channel_count:
        raise InvalidRange(f"channel {channel} out of range (buffer has {buffer.channel_count})")

    start = min(max(start, 0.0), buffer.duration)
    end = min(max(end, 0.0), buffer.duration)
    if end <= start:
        raise InvalidRange(f"empty range: start={start} end={end}")

    rate = buffer.sample_rate
    data = buffer.channel(channel)[math.floor(start * rate):math.floor(end * rate)]
    step = math.ceil(len(data) / width)

    peaks: list[PeakPair] = []
    for i in range(width):
        chunk = data[i * step:i * step + step]
        if len(chunk) == 0:
            peaks.append(PeakPair(min=0.0, max=0.0))
        else:
            peaks.append(PeakPair(min=float(chunk.min()), max=float(chunk.max())))
    return peaks
