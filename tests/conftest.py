"""Shared test fixtures."""

import json
from pathlib import Path

import numpy as np
import pytest

from prepforge.models import SampleBuffer, SeekableVideo

RATE = 8000


def tone(duration: float, rate: int = RATE, amplitude: float = 0.5, freq: float = 100.0) -> np.ndarray:
    t = np.arange(int(round(duration * rate))) / rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def build_buffer(
    duration: float,
    silences: list[tuple[float, float]] = (),
    rate: int = RATE,
    channels: int = 1,
) -> SampleBuffer:
    """A 100 Hz tone with exact digital silence over each (start, end) range."""
    mono = tone(duration, rate)
    for start, end in silences:
        mono[int(round(start * rate)):int(round(end * rate))] = 0.0
    return SampleBuffer(samples=np.tile(mono, (channels, 1)), sample_rate=rate)


class FakeVideo(SeekableVideo):
    """In-memory video whose brightness is a function of time.

    Records every seek and fails if pixels are read before a seek.
    """

    def __init__(self, duration: float, brightness_at, size: tuple[int, int] = (4, 6)):
        self._duration = duration
        self.brightness_at = brightness_at
        self.size = size
        self.seeks: list[float] = []
        self._pixels = None

    @property
    def duration(self) -> float:
        return self._duration

    def seek(self, time: float) -> None:
        self.seeks.append(time)
        h, w = self.size
        pixels = np.full((h, w, 4), self.brightness_at(time), dtype=np.uint8)
        pixels[..., 3] = 255
        self._pixels = pixels

    def read_current_frame_pixels(self) -> np.ndarray:
        assert self._pixels is not None, "read before seek"
        pixels, self._pixels = self._pixels, None
        return pixels


@pytest.fixture
def make_buffer():
    return build_buffer


@pytest.fixture
def make_video():
    return FakeVideo


@pytest.fixture
def sample_manifest_path(tmp_path: Path) -> Path:
    path = tmp_path / "sample_manifest.json"
    path.write_text(json.dumps({
        "version": "1",
        "audio": "speech.wav",
        "video": "clip.mp4",
        "output_dir": "out",
        "split": {"max_segment_duration": 10},
    }))
    return path
