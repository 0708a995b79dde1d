"""Web UI routes for PrepForge."""

import io
import logging
import time
from pathlib import Path

from flask import (
    Blueprint,
    current_app,
    jsonify,
    render_template,
    request,
    send_file,
)

from prepforge.editors.bundle import frame_filename, segment_filename
from prepforge.errors import DecodeError, EncodeFailure, InvalidRange
from prepforge.manifest import SplitConfig
from prepforge.session import AudioAsset, Session, VideoAsset

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__, template_folder="templates")

# In-memory session store: session_id -> Session
_sessions: dict[str, Session] = {}


def _error(message: str, code: int):
    return jsonify({"error": message}), code


def _audio_summary(asset: AudioAsset) -> dict:
    return {
        "id": asset.id,
        "name": asset.name,
        "duration": asset.duration,
        "sample_rate": asset.buffer.sample_rate,
        "channels": asset.buffer.channel_count,
        "splits": [{"id": p.id, "time": p.time} for p in asset.splits],
        "segments": [
            {"id": s.id, "start": s.start, "end": s.end, "filename": segment_filename(i, s)}
            for i, s in enumerate(asset.segments)
        ],
    }


def _video_summary(asset: VideoAsset) -> dict:
    frame = asset.last_frame
    return {
        "id": asset.id,
        "name": asset.name,
        "duration": asset.duration,
        "last_frame": {"timestamp": frame.timestamp} if frame else None,
    }


def _session_summary(session: Session) -> dict:
    return {
        "session_id": session.id,
        "status": session.status.value,
        "error": session.error,
        "config": {"max_segment_duration": session.config.max_segment_duration},
        "audio": _audio_summary(session.audio) if session.audio else None,
        "video": _video_summary(session.video) if session.video else None,
        "playback": session.playback.to_dict(),
    }


def _save_upload(session: Session, kind: str, default_ext: str):
    """Store the uploaded ``file`` field, returning (path, filename) or an error response."""
    if "file" not in request.files:
        return None, _error("No file provided", 400)

    f = request.files["file"]
    if not f.filename:
        return None, _error("Empty filename", 400)

    session_dir = Path(current_app.config["WORK_DIR"]) / session.id
    session_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or default_ext
    path = session_dir / f"{kind}{ext}"
    f.save(path)
    return (path, f.filename), None


@bp.route("/")
def index():
    return render_template("index.html")


@bp.route("/api/sessions", methods=["POST"])
def create_session():
    session = Session()
    _sessions[session.id] = session
    return jsonify(_session_summary(session)), 201


@bp.route("/api/sessions/<session_id>")
def get_session(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)
    return jsonify(_session_summary(_sessions[session_id]))


@bp.route("/api/sessions/<session_id>/config", methods=["PUT"])
def update_config(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)

    session = _sessions[session_id]
    data = request.get_json(silent=True) or {}
    try:
        session.config = SplitConfig(
            max_segment_duration=float(
                data.get("max_segment_duration", session.config.max_segment_duration)
            ),
        )
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)
    return jsonify(_session_summary(session))


# --- Audio ---

@bp.route("/api/sessions/<session_id>/audio", methods=["POST"])
def upload_audio(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)

    session = _sessions[session_id]
    saved, err = _save_upload(session, "audio", ".wav")
    if err:
        return err
    path, filename = saved

    try:
        session.load_audio(path, name=filename)
    except DecodeError:
        return _error(session.error, 422)
    except OSError:
        return _error(session.error, 500)
    return jsonify(_audio_summary(session.audio))


@bp.route("/api/sessions/<session_id>/audio", methods=["DELETE"])
def clear_audio(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)
    _sessions[session_id].clear_audio()
    return jsonify({"status": "cleared"})


def _audio_or_error(session_id: str):
    if session_id not in _sessions:
        return None, _error("Session not found", 404)
    asset = _sessions[session_id].audio
    if asset is None:
        return None, _error("No audio loaded", 409)
    return asset, None


@bp.route("/api/sessions/<session_id>/audio/peaks")
def audio_peaks(session_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    try:
        start = request.args.get("start", 0.0, type=float)
        end = request.args.get("end", asset.duration, type=float)
        channel = request.args.get("channel", 0, type=int)
        width = request.args.get("width", 800, type=int)
        peaks = asset.peaks(start, end, channel=channel, width=width)
    except InvalidRange as e:
        return _error(str(e), 400)
    return jsonify({"start": start, "end": end, "peaks": [[p.min, p.max] for p in peaks]})


@bp.route("/api/sessions/<session_id>/audio/auto-split", methods=["POST"])
def auto_split(session_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    asset.auto_split(_sessions[session_id].config.max_segment_duration)
    return jsonify(_audio_summary(asset))


@bp.route("/api/sessions/<session_id>/audio/splits", methods=["POST"])
def add_split(session_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    data = request.get_json(silent=True) or {}
    if "time" not in data:
        return _error("Missing 'time'", 400)
    try:
        time_s = float(data["time"])
    except (TypeError, ValueError):
        return _error("'time' must be a number", 400)
    try:
        point = asset.add_split(time_s)
    except InvalidRange as e:
        return _error(str(e), 422)
    return jsonify({"id": point.id, "time": point.time}), 201


@bp.route("/api/sessions/<session_id>/audio/splits/<point_id>", methods=["PATCH"])
def adjust_split(session_id: str, point_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    data = request.get_json(silent=True) or {}
    try:
        delta = float(data.get("delta", 0.0))
    except (TypeError, ValueError):
        return _error("'delta' must be a number", 400)
    try:
        point = asset.adjust_split(point_id, delta)
    except KeyError:
        return _error("Split point not found", 404)
    except InvalidRange as e:
        return _error(str(e), 422)
    return jsonify({"id": point.id, "time": point.time})


@bp.route("/api/sessions/<session_id>/audio/splits/<point_id>", methods=["DELETE"])
def remove_split(session_id: str, point_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    try:
        asset.remove_split(point_id)
    except KeyError:
        return _error("Split point not found", 404)
    return jsonify(_audio_summary(asset))


@bp.route("/api/sessions/<session_id>/audio/segments", methods=["POST"])
def generate_segments(session_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    session = _sessions[session_id]
    try:
        asset.generate_segments()
    except EncodeFailure as e:
        logger.error("Segment encoding failed for %s: %s", asset.name, e)
        return _error(str(e), 500)
    session.playback.stop()
    return jsonify(_audio_summary(asset))


@bp.route("/api/sessions/<session_id>/audio/segments/<segment_id>")
def download_segment(session_id: str, segment_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err

    try:
        index, segment = asset.get_segment(segment_id)
    except KeyError:
        return _error("Segment not found", 404)
    return send_file(
        io.BytesIO(segment.data),
        mimetype="audio/wav",
        as_attachment=request.args.get("download") == "1",
        download_name=segment_filename(index, segment),
    )


@bp.route("/api/sessions/<session_id>/audio/bundle")
def download_bundle(session_id: str):
    asset, err = _audio_or_error(session_id)
    if err:
        return err
    if not asset.segments:
        return _error("No segments generated", 409)

    return send_file(
        io.BytesIO(asset.bundle()),
        mimetype="application/zip",
        as_attachment=True,
        download_name=f"Audio_Segments_{int(time.time() * 1000)}.zip",
    )


# --- Video ---

@bp.route("/api/sessions/<session_id>/video", methods=["POST"])
def upload_video(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)

    session = _sessions[session_id]
    saved, err = _save_upload(session, "video", ".mp4")
    if err:
        return err
    path, filename = saved

    try:
        session.load_video(path, name=filename)
    except DecodeError:
        return _error(session.error, 422)
    except OSError:
        return _error(session.error, 500)
    return jsonify(_video_summary(session.video))


@bp.route("/api/sessions/<session_id>/video", methods=["DELETE"])
def clear_video(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)
    _sessions[session_id].clear_video()
    return jsonify({"status": "cleared"})


@bp.route("/api/sessions/<session_id>/video/frame", methods=["POST"])
def extract_frame(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)

    asset = _sessions[session_id].video
    if asset is None:
        return _error("No video loaded", 409)

    try:
        asset.extract_last_frame()
    except DecodeError as e:
        return _error(f"Frame decode failed: {e}", 422)
    except EncodeFailure as e:
        return _error(str(e), 500)
    return jsonify(_video_summary(asset))


@bp.route("/api/sessions/<session_id>/video/frame")
def download_frame(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)

    asset = _sessions[session_id].video
    if asset is None or asset.last_frame is None:
        return _error("No frame extracted", 409)

    return send_file(
        io.BytesIO(asset.last_frame.image_bytes),
        mimetype="image/png",
        as_attachment=request.args.get("download") == "1",
        download_name=frame_filename(asset.name),
    )


# --- Playback ---

@bp.route("/api/sessions/<session_id>/playback", methods=["POST"])
def playback(session_id: str):
    if session_id not in _sessions:
        return _error("Session not found", 404)

    controller = _sessions[session_id].playback
    data = request.get_json(silent=True) or {}
    action = data.get("action")
    clip_id = data.get("clip_id")

    if action in ("play", "toggle") and not clip_id:
        return _error("Missing 'clip_id'", 400)

    if action == "play":
        controller.play(clip_id)
    elif action == "toggle":
        controller.toggle(clip_id)
    elif action == "stop":
        controller.stop()
    elif action == "ended":
        controller.on_natural_end(clip_id)
    else:
        return _error(f"Unknown action: {action}", 400)
    return jsonify(controller.to_dict())
