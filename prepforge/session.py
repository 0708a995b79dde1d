"""Asset records and the editing session that owns them."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from prepforge import ffutil
from prepforge.analyzers.frame import extract_reference_frame
from prepforge.analyzers.splits import find_splits
from prepforge.analyzers.waveform import summarize
from prepforge.editors.bundle import bundle_segments
from prepforge.editors.slicer import slice_all
from prepforge.errors import DecodeError
from prepforge.manifest import SplitConfig
from prepforge.models import ExtractedFrame, PeakPair, SampleBuffer, SeekableVideo, Segment, new_id
from prepforge.playback import PlaybackController
from prepforge.splitlist import SplitList, SplitPoint

logger = logging.getLogger(__name__)


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


@dataclass
class AudioAsset:
    """A decoded recording with its split points and generated segments.

    All split-list changes go through the asset lock and discard any
    previously generated segments.
    """

    name: str
    buffer: SampleBuffer
    id: str = field(default_factory=new_id)
    segments: list[Segment] = field(default_factory=list)
    splits: SplitList = field(init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.splits = SplitList(self.buffer.duration)

    @property
    def duration(self) -> float:
        return self.buffer.duration

    def auto_split(self, max_segment_duration: float) -> list[SplitPoint]:
        with self._lock:
            times = find_splits(self.buffer, max_segment_duration)
            self.splits.replace(times)
            self.segments = []
            return list(self.splits)

    def add_split(self, time: float) -> SplitPoint:
        with self._lock:
            point = self.splits.add(time)
            self.segments = []
            return point

    def adjust_split(self, point_id: str, delta: float) -> SplitPoint:
        with self._lock:
            point = self.splits.adjust(point_id, delta)
            self.segments = []
            return point

    def remove_split(self, point_id: str) -> SplitPoint:
        with self._lock:
            point = self.splits.remove(point_id)
            self.segments = []
            return point

    def generate_segments(
        self, on_progress: Callable[[float], None] | None = None
    ) -> list[Segment]:
        with self._lock:
            self.segments = slice_all(self.buffer, self.splits.times, on_progress=on_progress)
            return list(self.segments)

    def get_segment(self, segment_id: str) -> tuple[int, Segment]:
        for i, seg in enumerate(self.segments):
            if seg.id == segment_id:
                return i, seg
        raise KeyError(segment_id)

    def bundle(self) -> bytes:
        with self._lock:
            return bundle_segments(self.segments)

    def peaks(
        self,
        start: float = 0.0,
        end: float | None = None,
        channel: int = 0,
        width: int = 800,
    ) -> list[PeakPair]:
        return summarize(self.buffer, start, self.duration if end is None else end, channel, width)


@dataclass
class VideoAsset:
    name: str
    video: SeekableVideo
    id: str = field(default_factory=new_id)
    last_frame: ExtractedFrame | None = None

    @property
    def duration(self) -> float:
        return self.video.duration

    def extract_last_frame(
        self, should_cancel: Callable[[], bool] | None = None
    ) -> ExtractedFrame:
        self.last_frame = extract_reference_frame(self.video, should_cancel=should_cancel)
        return self.last_frame


@dataclass
class Session:
    """One user's working state: at most one audio and one video asset."""

    id: str = field(default_factory=new_id)
    config: SplitConfig = field(default_factory=SplitConfig)
    audio: AudioAsset | None = None
    video: VideoAsset | None = None
    status: ProcessingStatus = ProcessingStatus.IDLE
    error: str | None = None
    playback: PlaybackController = field(default_factory=PlaybackController)

    def load_audio(self, path: Path, name: str | None = None) -> AudioAsset:
        self.status = ProcessingStatus.PROCESSING
        self.error = None
        try:
            buffer = ffutil.decode_audio(path)
        except (DecodeError, OSError) as e:
            logger.warning("Audio decode failed for %s: %s", path, e)
            self.status = ProcessingStatus.ERROR
            self.error = "Failed to process audio file."
            raise

        self.audio = AudioAsset(name=name or Path(path).name, buffer=buffer)
        self.status = ProcessingStatus.COMPLETED
        return self.audio

    def load_video(self, path: Path, name: str | None = None) -> VideoAsset:
        self.status = ProcessingStatus.PROCESSING
        self.error = None
        try:
            video = ffutil.FFmpegVideo(path)
        except (DecodeError, OSError) as e:
            logger.warning("Video probe failed for %s: %s", path, e)
            self.status = ProcessingStatus.ERROR
            self.error = "Failed to process video file."
            raise

        self.video = VideoAsset(name=name or Path(path).name, video=video)
        self.status = ProcessingStatus.COMPLETED
        return self.video

    def clear_audio(self) -> None:
        self.audio = None
        self.playback.stop()

    def clear_video(self) -> None:
        self.video = None
