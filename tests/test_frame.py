"""Unit tests for reference-frame extraction."""

import io

import numpy as np
import pytest
from PIL import Image

from prepforge.analyzers.frame import average_brightness, extract_reference_frame
from prepforge.editors.still import encode_png
from prepforge.errors import DecodeError, EncodeFailure, ProbeCancelled


class TestAverageBrightness:
    def test_mean_of_rgb_ignoring_alpha(self):
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        pixels[..., 0], pixels[..., 1], pixels[..., 2], pixels[..., 3] = 30, 60, 90, 255
        assert average_brightness(pixels) == pytest.approx(60.0)

    def test_mixed_pixels(self):
        pixels = np.zeros((1, 2, 4), dtype=np.uint8)
        pixels[0, 0, :3] = 255
        assert average_brightness(pixels) == pytest.approx(127.5)

    def test_empty_frame_raises(self):
        with pytest.raises(DecodeError):
            average_brightness(np.zeros((0, 0, 4), dtype=np.uint8))


class TestFadeToBlack:
    """A 4s clip whose last 2s are black; brightness 50 before that."""

    @staticmethod
    def _brightness(t: float) -> int:
        return 0 if t >= 2.0 else 50

    def test_backs_off_to_last_bright_frame(self, make_video):
        video = make_video(4.0, self._brightness)
        frame = extract_reference_frame(video)
        assert frame.timestamp == pytest.approx(1.95)

    def test_seeks_step_back_one_at_a_time(self, make_video):
        video = make_video(4.0, self._brightness)
        extract_reference_frame(video)
        assert video.seeks[0] == pytest.approx(3.95)
        assert len(video.seeks) == 21
        steps = np.diff(video.seeks)
        assert np.allclose(steps, -0.1)

    def test_returns_png_of_accepted_frame(self, make_video):
        video = make_video(4.0, self._brightness, size=(6, 8))
        frame = extract_reference_frame(video)
        image = Image.open(io.BytesIO(frame.image_bytes))
        assert image.format == "PNG"
        assert image.size == (8, 6)
        assert image.convert("RGB").getpixel((0, 0)) == (50, 50, 50)


class TestAcceptance:
    def test_bright_last_frame_accepted_immediately(self, make_video):
        video = make_video(10.0, lambda t: 200)
        frame = extract_reference_frame(video)
        assert frame.timestamp == pytest.approx(9.95)
        assert len(video.seeks) == 1

    def test_threshold_is_inclusive(self, make_video):
        video = make_video(3.0, lambda t: 10)
        assert extract_reference_frame(video).timestamp == pytest.approx(2.95)

    def test_all_black_clip_terminates(self, make_video):
        video = make_video(4.0, lambda t: 0)
        frame = extract_reference_frame(video)
        assert frame.timestamp <= 0.5
        assert frame.timestamp == pytest.approx(0.45)
        assert len(video.seeks) == 36

    def test_clip_shorter_than_offset_starts_at_zero(self, make_video):
        video = make_video(0.03, lambda t: 0)
        frame = extract_reference_frame(video)
        assert frame.timestamp == 0.0
        assert video.seeks == [0.0]

    def test_short_dark_clip_accepts_first_frame(self, make_video):
        video = make_video(0.5, lambda t: 0)
        assert extract_reference_frame(video).timestamp == pytest.approx(0.45)


class TestCancellation:
    def test_cancel_stops_after_dark_frame(self, make_video):
        video = make_video(4.0, lambda t: 0)
        with pytest.raises(ProbeCancelled):
            extract_reference_frame(video, should_cancel=lambda: True)
        assert len(video.seeks) == 1

    def test_cancel_not_polled_once_accepted(self, make_video):
        video = make_video(4.0, lambda t: 200)
        frame = extract_reference_frame(video, should_cancel=lambda: True)
        assert frame.timestamp == pytest.approx(3.95)


class TestEncodePng:
    def test_rgb_input(self):
        data = encode_png(np.full((3, 5, 3), 128, dtype=np.uint8))
        assert Image.open(io.BytesIO(data)).size == (5, 3)

    def test_bad_shape_raises(self):
        with pytest.raises(EncodeFailure):
            encode_png(np.zeros((3, 5), dtype=np.uint8))
