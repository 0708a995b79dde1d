"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import shutil
import subprocess
from pathlib import Path

import numpy as np

from prepforge.errors import DecodeError
from prepforge.models import ProbeResult, SampleBuffer, SeekableVideo

logger = logging.getLogger(__name__)

# Window decoded from the end of the file when a seek lands past the last frame.
TAIL_SECONDS = 1.0


class FFmpegNotFoundError(RuntimeError):
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def _stderr_tail(exc: subprocess.CalledProcessError) -> str:
    stderr = exc.stderr
    if isinstance(stderr, bytes):
        stderr = stderr.decode(errors="replace")
    return (stderr or "").strip()[-500:]


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        data = json.loads(result.stdout)
    except subprocess.CalledProcessError as e:
        raise DecodeError(f"ffprobe could not read {input_path}: {_stderr_tail(e)}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"ffprobe returned malformed output for {input_path}") from e

    streams = data.get("streams", [])
    video_stream = next((s for s in streams if s["codec_type"] == "video"), None)
    audio_stream = next((s for s in streams if s["codec_type"] == "audio"), None)

    if video_stream is None and audio_stream is None:
        raise DecodeError(f"No audio or video stream found in {input_path}")

    try:
        duration = float(data["format"]["duration"])
    except (KeyError, ValueError) as e:
        raise DecodeError(f"Unknown duration for {input_path}") from e

    result = ProbeResult(duration=duration)

    if video_stream is not None:
        # Parse fps from r_frame_rate (e.g. "30/1")
        num, den = video_stream.get("r_frame_rate", "0/1").split("/")
        result.fps = int(num) / int(den) if int(den) else 0.0
        result.width = int(video_stream["width"])
        result.height = int(video_stream["height"])
        result.codec_video = video_stream["codec_name"]
        if "duration" in video_stream:
            result.video_duration = float(video_stream["duration"])

    if audio_stream is not None:
        result.audio_sample_rate = int(audio_stream["sample_rate"])
        result.audio_channels = int(audio_stream.get("channels", 1))
        result.codec_audio = audio_stream["codec_name"]

    return result


def decode_audio(input_path: Path) -> SampleBuffer:
    """Decode every audio channel of *input_path* to float32 PCM.

    The native sample rate and channel layout are preserved.
    """
    info = probe(input_path)
    if not info.has_audio:
        raise DecodeError(f"No audio stream found in {input_path}")

    channels = info.audio_channels or 1
    cmd = [
        "ffmpeg",
        "-v", "error",
        "-i", str(input_path),
        "-vn",
        "-f", "f32le",
        "-acodec", "pcm_f32le",
        "-ac", str(channels),
        "-ar", str(info.audio_sample_rate),
        "-",
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, check=True)
    except subprocess.CalledProcessError as e:
        raise DecodeError(f"ffmpeg could not decode {input_path}: {_stderr_tail(e)}") from e

    raw = np.frombuffer(result.stdout, dtype="<f4")
    frames = len(raw) // channels
    if frames == 0:
        raise DecodeError(f"ffmpeg produced no samples for {input_path}")

    interleaved = raw[: frames * channels].reshape(frames, channels)
    logger.debug(
        "Decoded %s: %d frames, %d channel(s) at %d Hz",
        input_path, frames, channels, info.audio_sample_rate,
    )
    return SampleBuffer(samples=interleaved.T.copy(), sample_rate=info.audio_sample_rate)


class FFmpegVideo(SeekableVideo):
    """Seekable video handle that decodes single RGBA frames with ffmpeg.

    Each ``seek`` runs one ffmpeg process and waits for it; there is never
    more than one decode in flight.
    """

    def __init__(self, input_path: Path, info: ProbeResult | None = None):
        self.input_path = Path(input_path)
        self.info = info or probe(self.input_path)
        if not self.info.has_video:
            raise DecodeError(f"No video stream found in {self.input_path}")
        self._pixels: np.ndarray | None = None

    @property
    def duration(self) -> float:
        return self.info.duration

    def _decode(self, input_args: list[str], time: float) -> bytes:
        cmd = [
            "ffmpeg",
            "-v", "error",
            *input_args,
            "-i", str(self.input_path),
            "-an",
            "-f", "rawvideo",
            "-pix_fmt", "rgba",
            "-",
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, check=True)
        except subprocess.CalledProcessError as e:
            raise DecodeError(
                f"ffmpeg could not decode a frame at {time:.3f}s: {_stderr_tail(e)}"
            ) from e
        return result.stdout

    def seek(self, time: float) -> None:
        """Decode the frame shown at *time*.

        Past the last video frame (the container may run longer than the
        video stream) the stream's final frame is shown instead.
        """
        width, height = self.info.width, self.info.height
        frame_size = width * height * 4

        raw = self._decode(["-ss", f"{max(time, 0.0):.3f}", "-frames:v", "1"], time)
        if len(raw) < frame_size:
            logger.debug("No frame at %.3fs in %s, using the last frame", time, self.input_path)
            if self.info.video_duration is not None:
                tail_start = max(self.info.video_duration - TAIL_SECONDS, 0.0)
                tail = self._decode(["-ss", f"{tail_start:.3f}"], time)
            else:
                tail = self._decode(["-sseof", f"-{TAIL_SECONDS:g}"], time)
            usable = len(tail) // frame_size * frame_size
            if usable == 0:
                raise DecodeError(f"No frame available at {time:.3f}s in {self.input_path}")
            raw = tail[usable - frame_size:usable]

        self._pixels = np.frombuffer(raw[:frame_size], dtype=np.uint8).reshape(
            height, width, 4
        )

    def read_current_frame_pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise DecodeError("No frame decoded yet; call seek() first")
        return self._pixels
