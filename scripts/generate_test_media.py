#!/usr/bin/env python3
"""Generate synthetic media for PrepForge pipeline testing.

Audio (~35s, stereo 44.1 kHz WAV), tone with short gaps the splitter should find:
  0-9.5s     440 Hz tone
  9.5-10s    silence
  10-19s     880 Hz tone
  19-19.5s   silence
  19.5-28.5s 660 Hz tone
  28.5-29s   silence
  29-35s     440 Hz tone

Video (~6s, 320x240 H.264) that fades to black, like many AI-generated clips:
  0-4s   teal
  4-6s   black
"""

import subprocess
import sys
from pathlib import Path


def generate_test_audio(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    audio_filter = (
        "sine=f=440:d=9.5[a0];"
        "anullsrc=r=44100:cl=mono:d=0.5[s0];"
        "sine=f=880:d=9[a1];"
        "anullsrc=r=44100:cl=mono:d=0.5[s1];"
        "sine=f=660:d=9[a2];"
        "anullsrc=r=44100:cl=mono:d=0.5[s2];"
        "sine=f=440:d=6[a3];"
        "[a0][s0][a1][s1][a2][s2][a3]concat=n=7:v=0:a=1[aout]"
    )

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", audio_filter,
        "-map", "[aout]",
        "-ar", "44100",
        "-ac", "2",
        "-c:a", "pcm_s16le",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


def generate_test_video(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    video_filter = (
        "color=c=teal:s=320x240:d=4:r=30[v0];"
        "color=c=black:s=320x240:d=2:r=30[v1];"
        "[v0][v1]concat=n=2:v=1:a=0[vout]"
    )

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", video_filter,
        "-map", "[vout]",
        "-c:v", "libx264",
        "-pix_fmt", "yuv420p",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures")
    generate_test_audio(out_dir / "synthetic.wav")
    generate_test_video(out_dir / "synthetic.mp4")
