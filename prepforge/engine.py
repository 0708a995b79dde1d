"""Orchestrator: runs the preprocessing pipeline defined by a Manifest."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from prepforge import ffutil
from prepforge.analyzers.frame import extract_reference_frame
from prepforge.analyzers.splits import find_splits
from prepforge.editors.bundle import bundle_segments, frame_filename, segment_filename
from prepforge.editors.slicer import slice_all
from prepforge.manifest import Manifest

logger = logging.getLogger(__name__)

BUNDLE_NAME = "segments.zip"


@dataclass
class EngineResult:
    output_dir: Path
    split_points: list[float] = field(default_factory=list)
    segment_paths: list[Path] = field(default_factory=list)
    bundle_path: Path | None = None
    frame_path: Path | None = None
    frame_timestamp: float | None = None
    duration_audio: float = 0.0
    duration_video: float = 0.0


def process(
    manifest: Manifest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the full preprocessing pipeline.

    Args:
        manifest: Validated processing manifest.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        logger.info("[%3.0f%%] %s", frac * 100, stage)
        if on_progress:
            on_progress(stage, frac)

    def _sub_progress(stage: str, base: float, span: float):
        """Return a callback that maps a step's [0,1] to [base, base+span]."""
        def cb(frac: float) -> None:
            if on_progress:
                on_progress(stage, base + frac * span)
        return cb

    ffutil.check_ffmpeg()

    output_dir = manifest.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    result = EngineResult(output_dir=output_dir)

    # --- Audio splitting ---
    if manifest.audio is not None and manifest.split.enabled:
        _progress("Decoding audio", 0.0)
        buffer = ffutil.decode_audio(manifest.audio)
        result.duration_audio = buffer.duration

        _progress("Finding split points", 0.15)
        result.split_points = find_splits(buffer, manifest.split.max_segment_duration)

        stage = "Encoding fragments"
        _progress(stage, 0.25)
        segments = slice_all(
            buffer, result.split_points, on_progress=_sub_progress(stage, 0.25, 0.35)
        )

        for i, seg in enumerate(segments):
            path = output_dir / segment_filename(i, seg)
            path.write_bytes(seg.data)
            result.segment_paths.append(path)

        if manifest.split.bundle and segments:
            _progress("Bundling fragments", 0.6)
            result.bundle_path = output_dir / BUNDLE_NAME
            result.bundle_path.write_bytes(bundle_segments(segments))

    # --- Reference frame ---
    if manifest.video is not None and manifest.frame.enabled:
        _progress("Searching for reference frame", 0.65)
        video = ffutil.FFmpegVideo(manifest.video)
        result.duration_video = video.duration

        frame = extract_reference_frame(video)
        result.frame_timestamp = frame.timestamp
        result.frame_path = output_dir / frame_filename(manifest.video.name)
        result.frame_path.write_bytes(frame.image_bytes)

    _progress("Done", 1.0)
    return result
