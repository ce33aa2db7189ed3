import cv2
import numpy as np

from typing import List

def keypoint_overlap(kp1: cv2.KeyPoint, kp2: cv2.KeyPoint) -> float:
    """
    Intersection over union of the neighbourhood disks of two keypoints, 0 for disjoint disks.
    """
    return cv2.KeyPoint_overlap(kp1, kp2)

def suppress_non_maxima(response: np.ndarray, min_response: float, size: float) -> List[cv2.KeyPoint]:
    """
    Converts a dense response map into a sparse set of keypoints.

    Pixels are visited in raster order. Every pixel above `min_response`
    becomes a candidate of diameter `size`. The candidate is checked against
    the retained keypoints in insertion order and the first overlapping one
    decides: a stronger candidate replaces it in place, a weaker one is dropped.
    Candidates without overlap are appended.

    All keypoints share the same diameter, so two of them overlap
    exactly when their centers are closer than `size`.

    Parameters:
    --------
    response: np.ndarray
        2D response map, e.g. a normalized Harris response.
    min_response: float
        Pixels with response <= min_response are ignored.
    size: float
        Neighbourhood diameter assigned to every keypoint.

    Returns:
    --------
    keypoints: List[cv2.KeyPoint]
        Retained keypoints, ordered by first insertion.
    """
    response = np.asarray(response)
    assert response.ndim == 2, f"Response map must be 2D, got shape {response.shape}."

    candidates = np.argwhere(response > min_response)
    size_2 = float(size) ** 2

    # Retained keypoints, first n_kept rows are valid
    kept_xy = np.empty((len(candidates), 2), dtype=np.float64)
    kept_response = np.empty(len(candidates), dtype=np.float64)
    n_kept = 0

    for row, col in candidates:
        value = float(response[row, col])

        d_2 = (kept_xy[:n_kept, 0] - col) ** 2 + (kept_xy[:n_kept, 1] - row) ** 2
        first = np.flatnonzero(d_2 < size_2)[:1]

        if len(first) == 0:
            kept_xy[n_kept] = (col, row)
            kept_response[n_kept] = value
            n_kept += 1
        elif kept_response[first[0]] < value:
            kept_xy[first[0]] = (col, row)
            kept_response[first[0]] = value

    return [cv2.KeyPoint(float(x), float(y), float(size), -1, float(r))
            for (x, y), r in zip(kept_xy[:n_kept], kept_response[:n_kept])]
