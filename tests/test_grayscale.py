# tests/test_grayscale.py
import numpy as np
from measure_engine.common.models import Frame
from measure_engine.vision.grayscale import to_grayscale
from conftest import rgba_canvas


def test_luma_weights_per_channel():
    canvas = rgba_canvas(3, 1)
    canvas[0, 0, :3] = (255, 0, 0)
    canvas[0, 1, :3] = (0, 255, 0)
    canvas[0, 2, :3] = (0, 0, 255)
    gray = to_grayscale(Frame.from_rgba(canvas))
    assert gray.shape == (1, 3)
    assert gray.dtype == np.uint8
    assert gray.tolist() == [[76, 149, 29]]


def test_alpha_is_ignored():
    canvas = rgba_canvas(2, 1)
    canvas[..., :3] = 100
    canvas[0, 1, 3] = 0
    gray = to_grayscale(Frame.from_rgba(canvas))
    assert gray[0, 0] == gray[0, 1]


def test_truncated_buffer_reads_missing_pixels_as_zero():
    frame = Frame(width=2, height=2, pixels=bytes([255, 0, 0, 255, 0, 255]))
    gray = to_grayscale(frame)
    assert gray.tolist() == [[76, 0], [0, 0]]


def test_pixel_without_alpha_byte_is_still_read():
    frame = Frame(width=2, height=1, pixels=bytes([255, 0, 0, 255, 0, 255, 0]))
    assert to_grayscale(frame).tolist() == [[76, 149]]


def test_empty_frame():
    gray = to_grayscale(Frame(width=0, height=0, pixels=b""))
    assert gray.shape == (0, 0)
