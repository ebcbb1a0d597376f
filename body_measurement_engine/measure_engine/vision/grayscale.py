# body_measurement_engine/measure_engine/vision/grayscale.py
import numpy as np
from ..common.models import Frame

# ITU-R BT.601 luma weights
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114


def to_grayscale(frame: Frame) -> np.ndarray:
    """
    Converts an RGBA frame to an (H, W) uint8 intensity buffer.

    Pixels whose R, G or B byte lies beyond the end of a truncated buffer are 0.
    """
    count = frame.pixel_count
    gray = np.zeros(count, dtype=np.uint8)
    if count == 0:
        return gray.reshape(frame.height, frame.width)

    data = np.frombuffer(frame.pixels, dtype=np.uint8)[:count * 4]
    # A pixel is readable only if its blue byte is inside the buffer
    readable = min(count, (data.size + 1) // 4)
    if readable > 0:
        rgba = np.zeros(readable * 4, dtype=np.uint8)
        rgba[:min(data.size, readable * 4)] = data[:readable * 4]
        rgba = rgba.reshape(readable, 4).astype(np.float64)
        luma = LUMA_R * rgba[:, 0] + LUMA_G * rgba[:, 1] + LUMA_B * rgba[:, 2]
        gray[:readable] = np.floor(luma).astype(np.uint8)
    return gray.reshape(frame.height, frame.width)
