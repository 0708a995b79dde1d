"""Shared data types used across PrepForge."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np


def new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class SampleBuffer:
    """Decoded PCM audio: one float row per channel, all at ``sample_rate``.

    The sample array is stored read-only; the core never writes to it.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[np.newaxis, :]
        if samples.ndim != 2 or samples.shape[0] == 0:
            raise ValueError("samples must have shape (channels, frames)")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        samples = samples.view()
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    @property
    def channel_count(self) -> int:
        return self.samples.shape[0]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


@dataclass
class Segment:
    """One sliced fragment of an audio asset, already encoded as WAV."""

    start: float
    end: float
    data: bytes = field(repr=False)
    id: str = field(default_factory=new_id, compare=False)

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class PeakPair:
    """Min/max sample value for one waveform column."""

    min: float
    max: float


@dataclass
class VideoFrameCandidate:
    timestamp: float
    pixels: np.ndarray = field(repr=False)


@dataclass
class ExtractedFrame:
    """The accepted reference frame of a video, encoded as PNG."""

    timestamp: float
    image_bytes: bytes = field(repr=False)


class SeekableVideo(ABC):
    """A video that can be positioned and read one frame at a time."""

    @property
    @abstractmethod
    def duration(self) -> float:
        """Total length in seconds."""

    @abstractmethod
    def seek(self, time: float) -> None:
        """Position at ``time`` and block until that frame is decoded."""

    @abstractmethod
    def read_current_frame_pixels(self) -> np.ndarray:
        """Return the current frame as a (height, width, 4) uint8 RGBA array."""


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe.

    Audio-only files leave the video fields at None and vice versa.
    """

    duration: float
    width: int | None = None
    height: int | None = None
    fps: float | None = None
    audio_sample_rate: int | None = None
    audio_channels: int | None = None
    codec_video: str | None = None
    codec_audio: str | None = None
    video_duration: float | None = None

    @property
    def has_audio(self) -> bool:
        return self.codec_audio is not None

    @property
    def has_video(self) -> bool:
        return self.codec_video is not None
