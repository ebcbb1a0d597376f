# body_measurement_engine/measure_engine/vision/contours.py
import numpy as np
from typing import List, Optional
from ..common.models import Contour

_NEIGHBOURS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))


def _trace(mask: bytes, visited: bytearray, start: int, width: int, height: int) -> List[List[int]]:
    """Iterative 8-connected flood fill from one edge pixel. Each pixel is visited once."""
    points = []
    stack = [start]
    visited[start] = 1
    while stack:
        index = stack.pop()
        y, x = divmod(index, width)
        points.append([x, y])
        for dx, dy in _NEIGHBOURS:
            nx, ny = x + dx, y + dy
            if nx < 0 or ny < 0 or nx >= width or ny >= height:
                continue
            neighbour = ny * width + nx
            if visited[neighbour] or not mask[neighbour]:
                continue
            visited[neighbour] = 1
            stack.append(neighbour)
    return points


def find_contours(edges: np.ndarray, min_points: int = 50) -> List[Contour]:
    """
    Groups edge pixels into connected components in raster order.
    Components with `min_points` points or fewer are discarded.
    """
    height, width = edges.shape
    flat = edges.ravel()
    mask = (flat > 0).tobytes()
    visited = bytearray(flat.size)
    contours = []
    for start in np.flatnonzero(flat):
        start = int(start)
        if visited[start]:
            continue
        points = _trace(mask, visited, start, width, height)
        if len(points) > min_points:
            contours.append(Contour(points=np.array(points, dtype=np.int64)))
    return contours


def largest_contour(contours: List[Contour], min_points: int = 100) -> Optional[Contour]:
    """The contour with the most points, or None if it is smaller than `min_points`."""
    if not contours:
        return None
    best = max(contours, key=len)
    if len(best) < min_points:
        return None
    return best
