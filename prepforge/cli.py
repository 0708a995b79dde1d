"""Thin CLI entry point. Builds a Manifest and calls the engine."""

import argparse
import json
import logging
import sys
from pathlib import Path

from prepforge import ffutil
from prepforge.analyzers.waveform import summarize
from prepforge.engine import process
from prepforge.errors import DecodeError, EncodeFailure, InvalidRange
from prepforge.manifest import FrameConfig, Manifest, SplitConfig, load_manifest

BARS = " ▁▂▃▄▅▆▇█"


def render_peaks(peaks) -> str:
    """One text column per peak pair, height by the larger absolute value."""
    chars = []
    for p in peaks:
        level = min(max(abs(p.min), abs(p.max)), 1.0)
        chars.append(BARS[round(level * (len(BARS) - 1))])
    return "".join(chars)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prepforge",
        description="PrepForge: split audio at quiet points and grab a video's last usable frame.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    proc = sub.add_parser("process", help="Split audio and/or extract a reference frame")
    proc.add_argument("--audio", "-a", type=Path, help="Input audio file")
    proc.add_argument("--video", "-V", type=Path, help="Input video file")
    proc.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    proc.add_argument("--output-dir", "-o", type=Path, help="Directory for the produced files")
    proc.add_argument("--max-segment", type=float, default=30.0, help="Maximum fragment length (seconds)")
    proc.add_argument("--no-zip", action="store_true", help="Do not bundle fragments into a zip")

    peaks = sub.add_parser("peaks", help="Print a text waveform of an audio file")
    peaks.add_argument("audio", type=Path, help="Input audio file")
    peaks.add_argument("--start", type=float, default=0.0, help="Range start (seconds)")
    peaks.add_argument("--end", type=float, help="Range end (seconds, default: end of file)")
    peaks.add_argument("--channel", type=int, default=0, help="Channel index")
    peaks.add_argument("--width", type=int, default=80, help="Number of columns")
    peaks.add_argument("--json", action="store_true", help="Print min/max pairs as JSON")

    serve = sub.add_parser("serve", help="Launch the web UI")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    return parser


def _run_process(args) -> None:
    if args.manifest:
        m = load_manifest(args.manifest)
    elif args.audio or args.video:
        source = args.audio or args.video
        output_dir = args.output_dir or source.with_name(source.stem + "_prepared")
        m = Manifest(
            audio=args.audio,
            video=args.video,
            output_dir=output_dir,
            split=SplitConfig(max_segment_duration=args.max_segment, bundle=not args.no_zip),
            frame=FrameConfig(enabled=args.video is not None),
        )
    else:
        print("Error: provide --audio, --video or --manifest.", file=sys.stderr)
        sys.exit(1)

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    result = process(m, on_progress=on_progress)

    print()
    print(f"Done! Output: {result.output_dir}")
    if result.segment_paths:
        print(f"  Audio: {result.duration_audio:.1f}s -> {len(result.segment_paths)} fragments")
        if result.split_points:
            print("  Split points: " + ", ".join(f"{t:.2f}s" for t in result.split_points))
    if result.bundle_path:
        print(f"  Bundle: {result.bundle_path}")
    if result.frame_path:
        print(f"  Reference frame: {result.frame_path} (at {result.frame_timestamp:.2f}s)")


def _run_peaks(args) -> None:
    buffer = ffutil.decode_audio(args.audio)
    end = buffer.duration if args.end is None else args.end
    peaks = summarize(buffer, args.start, end, channel=args.channel, width=args.width)
    if args.json:
        print(json.dumps([[p.min, p.max] for p in peaks]))
    else:
        print(render_peaks(peaks))


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from prepforge.web import create_app
        app = create_app()
        print(f"PrepForge web UI: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        if args.command == "process":
            _run_process(args)
        elif args.command == "peaks":
            _run_peaks(args)
    except (ffutil.FFmpegNotFoundError, DecodeError, EncodeFailure, InvalidRange, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
