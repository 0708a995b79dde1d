"""Tests for asset records and the session."""

import io
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from prepforge.errors import DecodeError, InvalidRange
from prepforge.session import AudioAsset, ProcessingStatus, Session, VideoAsset

SILENCES = [(9.5, 10.0), (19.0, 19.5), (28.5, 29.0)]


@pytest.fixture
def asset(make_buffer) -> AudioAsset:
    return AudioAsset(name="speech.wav", buffer=make_buffer(35.0, silences=SILENCES))


class TestAudioAssetSplits:
    def test_auto_split_replaces_points(self, asset):
        asset.add_split(3.0)
        points = asset.auto_split(10.0)
        assert [p.time for p in points] == pytest.approx([9.5, 19.0, 28.5])
        assert asset.splits.times == pytest.approx([9.5, 19.0, 28.5])

    def test_every_change_clears_segments(self, asset):
        asset.generate_segments()
        assert len(asset.segments) == 1

        point = asset.add_split(12.0)
        assert asset.segments == []

        asset.generate_segments()
        asset.adjust_split(point.id, 0.5)
        assert asset.segments == []

        asset.generate_segments()
        asset.remove_split(point.id)
        assert asset.segments == []

        asset.generate_segments()
        asset.auto_split(10.0)
        assert asset.segments == []

    def test_failed_auto_split_leaves_state(self, asset):
        asset.add_split(5.0)
        asset.generate_segments()
        with pytest.raises(InvalidRange):
            asset.auto_split(0)
        assert asset.splits.times == [5.0]
        assert len(asset.segments) == 2


class TestAudioAssetSegments:
    def test_generate_and_lookup(self, asset):
        asset.auto_split(10.0)
        segments = asset.generate_segments()
        assert len(segments) == 4

        index, found = asset.get_segment(segments[2].id)
        assert index == 2
        assert found.start == pytest.approx(19.0)

        with pytest.raises(KeyError):
            asset.get_segment("nope")

    def test_bundle(self, asset):
        asset.auto_split(10.0)
        asset.generate_segments()
        with zipfile.ZipFile(io.BytesIO(asset.bundle())) as zf:
            assert zf.namelist()[0] == "Segment_1_10s.wav"
            assert len(zf.namelist()) == 4

    def test_peaks_default_to_whole_file(self, asset):
        peaks = asset.peaks(width=35)
        assert len(peaks) == 35
        assert all(p.max > 0 for p in peaks)


class TestVideoAsset:
    def test_extract_last_frame(self, make_video):
        asset = VideoAsset(name="clip.mp4", video=make_video(4.0, lambda t: 0 if t >= 2.0 else 80))
        frame = asset.extract_last_frame()
        assert asset.last_frame is frame
        assert frame.timestamp == pytest.approx(1.95)
        assert asset.duration == 4.0


class TestSession:
    def test_load_audio(self, make_buffer):
        session = Session()
        with patch("prepforge.session.ffutil.decode_audio", return_value=make_buffer(3.0)):
            asset = session.load_audio(Path("/tmp/x/audio.wav"), name="speech.wav")
        assert session.audio is asset
        assert asset.name == "speech.wav"
        assert session.status is ProcessingStatus.COMPLETED
        assert session.error is None

    def test_load_audio_failure(self):
        session = Session()
        with patch(
            "prepforge.session.ffutil.decode_audio", side_effect=DecodeError("bad file")
        ):
            with pytest.raises(DecodeError):
                session.load_audio(Path("broken.mp3"))
        assert session.status is ProcessingStatus.ERROR
        assert session.error == "Failed to process audio file."
        assert session.audio is None

    def test_load_audio_without_ffmpeg(self):
        session = Session()
        with patch(
            "prepforge.session.ffutil.decode_audio", side_effect=FileNotFoundError("ffprobe")
        ):
            with pytest.raises(FileNotFoundError):
                session.load_audio(Path("speech.wav"))
        assert session.status is ProcessingStatus.ERROR
        assert session.error == "Failed to process audio file."

    def test_load_video_without_ffmpeg(self):
        session = Session()
        with patch(
            "prepforge.session.ffutil.FFmpegVideo", side_effect=FileNotFoundError("ffprobe")
        ):
            with pytest.raises(FileNotFoundError):
                session.load_video(Path("clip.mp4"))
        assert session.status is ProcessingStatus.ERROR
        assert session.error == "Failed to process video file."

    def test_load_video(self, make_video):
        session = Session()
        with patch("prepforge.session.ffutil.FFmpegVideo", return_value=make_video(3.0, lambda t: 100)):
            asset = session.load_video(Path("clip.mp4"))
        assert session.video is asset
        assert asset.name == "clip.mp4"
        assert session.status is ProcessingStatus.COMPLETED

    def test_clear_audio_stops_playback(self, make_buffer):
        session = Session()
        with patch("prepforge.session.ffutil.decode_audio", return_value=make_buffer(3.0)):
            asset = session.load_audio(Path("speech.wav"))
        session.playback.play(asset.id)
        session.clear_audio()
        assert session.audio is None
        assert session.playback.active_id is None
