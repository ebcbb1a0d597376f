# body_measurement_engine/measure_engine/vision/edges.py
import cv2
import numpy as np

EDGE_VALUE = 255


def sobel_edges(gray: np.ndarray, threshold: float = 100.0) -> np.ndarray:
    """
    Binary Sobel edge map of a grayscale buffer. Values are 0 or 255.
    Border pixels carry no gradient and stay 0.
    """
    height, width = gray.shape
    edges = np.zeros((height, width), dtype=np.uint8)
    if height < 3 or width < 3:
        return edges

    src = np.ascontiguousarray(gray, dtype=np.uint8)
    gx = cv2.Sobel(src, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(src, cv2.CV_32F, 0, 1, ksize=3)
    magnitude = cv2.magnitude(gx, gy)

    # Only interior pixels have a full 3x3 neighbourhood
    edges[1:-1, 1:-1] = np.where(magnitude[1:-1, 1:-1] > threshold, EDGE_VALUE, 0)
    return edges
