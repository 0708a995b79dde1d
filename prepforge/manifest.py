"""JSON manifest schema, the contract between CLI/API and engine."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

RECOMMENDED_MAX_SEGMENT = (5.0, 30.0)


@dataclass
class SplitConfig:
    """Configuration for auto-splitting audio into fragments."""

    enabled: bool = True
    max_segment_duration: float = 30.0
    bundle: bool = True

    def __post_init__(self) -> None:
        if self.max_segment_duration <= 0:
            raise ValueError(
                f"max_segment_duration must be positive, got {self.max_segment_duration}"
            )


@dataclass
class FrameConfig:
    """Configuration for reference-frame extraction."""

    enabled: bool = True


@dataclass
class Manifest:
    """Top-level processing manifest."""

    output_dir: Path
    audio: Path | None = None
    video: Path | None = None
    version: str = "1"
    split: SplitConfig = field(default_factory=SplitConfig)
    frame: FrameConfig = field(default_factory=FrameConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "output_dir" not in data:
        raise ValueError("Manifest must contain an 'output_dir' field")
    if not data.get("audio") and not data.get("video"):
        raise ValueError("Manifest must contain an 'audio' or 'video' input")

    split = SplitConfig(**data["split"]) if "split" in data else SplitConfig()
    frame = FrameConfig(**data["frame"]) if "frame" in data else FrameConfig()

    low, high = RECOMMENDED_MAX_SEGMENT
    if not low <= split.max_segment_duration <= high:
        logger.warning(
            "max_segment_duration %.1fs is outside the recommended %g-%gs range",
            split.max_segment_duration, low, high,
        )

    return Manifest(
        version=data.get("version", "1"),
        audio=Path(data["audio"]) if data.get("audio") else None,
        video=Path(data["video"]) if data.get("video") else None,
        output_dir=Path(data["output_dir"]),
        split=split,
        frame=frame,
    )
