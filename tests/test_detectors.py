import cv2
import numpy as np
import pytest

from kptrack.features.detectors import Detector, DEFINED_DETECTORS, HarrisDetector
from kptrack.features.nms import keypoint_overlap

@pytest.mark.parametrize("algorithm", list(DEFINED_DETECTORS.keys()))
def test_detects_on_blocks(algorithm, blocks_image):
    detector = Detector(algorithm)
    keypoints = detector.run(blocks_image)

    assert len(keypoints) > 0
    assert all(isinstance(kp, cv2.KeyPoint) for kp in keypoints)
    assert detector.last_time_ms >= 0.0

def test_unknown_algorithm():
    with pytest.raises(AssertionError):
        Detector("SURF_PLUS")

def test_color_input(blocks_image):
    color = cv2.cvtColor(blocks_image, cv2.COLOR_GRAY2BGR)
    detector = Detector("FAST")
    assert len(detector.run(color)) == len(detector.run(blocks_image))

def test_shi_tomasi_size(square_image):
    keypoints = Detector("SHITOMASI").run(square_image)
    assert len(keypoints) >= 4
    assert all(kp.size == 4.0 for kp in keypoints)

def test_shi_tomasi_flat_image():
    assert Detector("SHITOMASI").run(np.zeros((50, 50), dtype=np.uint8)) == []

def test_harris_square_corners(square_image):
    keypoints = Detector("HARRIS").run(square_image)

    assert len(keypoints) > 0
    assert all(kp.size == 6.0 for kp in keypoints)
    assert all(kp.response > 100 for kp in keypoints)
    # Every corner of the square has a keypoint close to it
    for corner in [(30, 30), (69, 30), (30, 69), (69, 69)]:
        distances = [np.hypot(kp.pt[0] - corner[0], kp.pt[1] - corner[1]) for kp in keypoints]
        assert min(distances) < 4

def test_harris_response_range(square_image):
    response = HarrisDetector().response(square_image)
    assert response.shape == square_image.shape
    assert response.min() == pytest.approx(0.0, abs=1e-3)
    assert response.max() == pytest.approx(255.0, abs=1e-3)

def test_harris_params_override(square_image):
    default = Detector("HARRIS").run(square_image)
    strict = Detector("HARRIS", {"minResponse": 250}).run(square_image)
    assert len(strict) <= len(default)
    assert all(kp.response > 250 for kp in strict)

def test_harris_aperture_sets_size(square_image):
    keypoints = Detector("HARRIS", {"apertureSize": 5}).run(square_image)
    assert all(kp.size == 10.0 for kp in keypoints)

def test_harris_single_corner_cluster(square_image):
    keypoints = Detector("HARRIS").run(square_image)
    near = [kp for kp in keypoints if np.hypot(kp.pt[0] - 30, kp.pt[1] - 30) < 4]
    assert len(near) == 1

def test_fast_defaults():
    detector = Detector("FAST")
    assert detector.detector.getThreshold() == 30
    assert detector.detector.getNonmaxSuppression()

def test_json_round_trip():
    detector = Detector("HARRIS", {"minResponse": 120})
    restored = Detector.from_json(detector.to_json())

    assert restored.algorithm == "HARRIS"
    assert restored.params == {"minResponse": 120}
    assert restored.detector.min_response == 120
