"""Silence-biased split finder.

Cuts long recordings into pieces no longer than a configured maximum,
placing each cut at the quietest short chunk near the end of the allowed
span so that words are not chopped mid-syllable.
"""

import logging
import math

import numpy as np

from prepforge.errors import InvalidRange
from prepforge.models import SampleBuffer

logger = logging.getLogger(__name__)

PROBE_CHUNK_SECONDS = 0.1
MAX_SEARCH_WINDOW = 5.0
MIN_SEGMENT_SECONDS = 1.0


def chunk_energy(samples: np.ndarray) -> float:
    """Sum of absolute amplitudes, a cheap proxy for loudness."""
    return float(np.abs(samples).sum(dtype=np.float64))


def find_splits(buffer: SampleBuffer, max_segment_seconds: float) -> list[float]:
    """Return ascending split times so no piece exceeds *max_segment_seconds*.

    For each piece the last ``min(5s, max/2)`` before the limit is scanned in
    0.1s chunks of channel 0 and the cut goes at the start of the chunk with
    the lowest energy (earliest wins on ties). The scan never starts less
    than one second after the previous cut.
    """
    if max_segment_seconds <= 0:
        raise InvalidRange(f"max_segment_seconds must be positive, got {max_segment_seconds}")

    duration = buffer.duration
    if max_segment_seconds >= duration:
        return []

    data = buffer.channel(0)
    rate = buffer.sample_rate
    window = min(MAX_SEARCH_WINDOW, max_segment_seconds / 2)
    chunk_size = max(1, math.floor(PROBE_CHUNK_SECONDS * rate))

    splits: list[float] = []
    cursor = 0.0
    while cursor + max_segment_seconds < duration:
        search_start = max(cursor + MIN_SEGMENT_SECONDS, cursor + max_segment_seconds - window)
        search_end = cursor + max_segment_seconds
        best_time = search_end
        min_energy = math.inf

        for s in range(math.floor(search_start * rate), math.floor(search_end * rate), chunk_size):
            if s + chunk_size > len(data):
                break
            energy = chunk_energy(data[s:s + chunk_size])
            if energy < min_energy:
                min_energy = energy
                best_time = s / rate

        logger.debug(
            "Split after %.2fs: searched %.2f-%.2fs, cut at %.3fs",
            cursor, search_start, search_end, best_time,
        )
        splits.append(best_time)
        cursor = best_time

    logger.info("Found %d split point(s) for %.2fs of audio", len(splits), duration)
    return splits
