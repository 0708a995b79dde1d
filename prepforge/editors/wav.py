"""Canonical 16-bit PCM WAV writer."""

import struct

import numpy as np

from prepforge.errors import EncodeFailure

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
PCM_FORMAT = 1

# RIFF header, 16-byte fmt chunk, data chunk header
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def quantize(samples: np.ndarray) -> np.ndarray:
    """Convert float samples to int16.

    Values are clamped to [-1, 1]; negatives scale by 32768, the rest by
    32767, and the result is truncated toward zero. NaN becomes silence.
    """
    x = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0, posinf=1.0, neginf=-1.0)
    x = np.clip(x, -1.0, 1.0)
    scaled = np.where(x < 0, x * 32768.0, x * 32767.0)
    return np.trunc(scaled).astype("<i2")


def wav_header(data_size: int, channels: int, sample_rate: int) -> bytes:
    block_align = channels * BITS_PER_SAMPLE // 8
    return _HEADER.pack(
        b"RIFF", data_size + 36, b"WAVE",
        b"fmt ", 16, PCM_FORMAT, channels, sample_rate,
        sample_rate * block_align, block_align, BITS_PER_SAMPLE,
        b"data", data_size,
    )


def encode_wav(samples: np.ndarray, sample_rate: int) -> bytes:
    """Serialize a (channels, frames) float array as a WAV byte string.

    Frames are interleaved: every channel's sample for frame 0, then frame 1,
    and so on.
    """
    samples = np.asarray(samples)
    if samples.ndim == 1:
        samples = samples[np.newaxis, :]
    channels, frames = samples.shape
    if channels == 0 or channels > 0xFFFF:
        raise EncodeFailure(f"Unsupported channel count: {channels}")

    data_size = frames * channels * BITS_PER_SAMPLE // 8
    if data_size + 36 > 0xFFFFFFFF:
        raise EncodeFailure(f"{frames} frames is too long for a single WAV file")

    pcm = np.ascontiguousarray(quantize(samples).T).tobytes()
    return wav_header(data_size, channels, sample_rate) + pcm
