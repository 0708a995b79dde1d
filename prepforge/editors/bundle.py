"""Bundle produced files into a single ZIP archive for batch download."""

import io
import math
import zipfile
from typing import Mapping, Sequence

from prepforge.models import Segment


def segment_filename(index: int, segment: Segment) -> str:
    """File name for the *index*-th (0-based) segment, e.g. ``Segment_2_10s.wav``."""
    seconds = math.floor(segment.duration + 0.5)
    return f"Segment_{index + 1}_{seconds}s.wav"


def frame_filename(source_name: str) -> str:
    return f"LastFrame_{source_name}.png"


def bundle(files: Mapping[str, bytes]) -> bytes:
    """Pack ``{filename: data}`` into an in-memory ZIP archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def bundle_segments(segments: Sequence[Segment]) -> bytes:
    return bundle({segment_filename(i, seg): seg.data for i, seg in enumerate(segments)})
