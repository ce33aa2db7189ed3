import cv2
import numpy as np
import pytest

from kptrack.features.matchers import Matcher, filter_ratio

@pytest.fixture
def binary_descriptors() -> np.ndarray:
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(50, 32), dtype=np.uint8)

@pytest.fixture
def float_descriptors() -> np.ndarray:
    rng = np.random.default_rng(0)
    return rng.uniform(0, 1, size=(40, 16)).astype(np.float32)

def test_filter_ratio():
    knn = [
        [cv2.DMatch(0, 0, 1.0), cv2.DMatch(0, 1, 10.0)],
        [cv2.DMatch(1, 2, 9.0), cv2.DMatch(1, 3, 10.0)],
        [cv2.DMatch(2, 4, 1.0)],
        [],
    ]
    good = filter_ratio(knn, 0.8)
    assert [(m.queryIdx, m.trainIdx) for m in good] == [(0, 0)]
    assert len(filter_ratio(knn, 0.95)) == 2

def test_bf_nn_identity(binary_descriptors):
    matcher = Matcher("MAT_BF", "SEL_NN")
    matches = matcher.run(binary_descriptors, binary_descriptors)

    assert len(matches) == len(binary_descriptors)
    assert all(m.queryIdx == m.trainIdx and m.distance == 0 for m in matches)
    assert matcher.last_time_ms >= 0.0

def test_bf_knn_identity(binary_descriptors):
    matches = Matcher("MAT_BF", "SEL_KNN").run(binary_descriptors, binary_descriptors)
    assert len(matches) == len(binary_descriptors)
    assert all(m.queryIdx == m.trainIdx for m in matches)

def test_bf_knn_removes_ambiguous(binary_descriptors):
    # Every reference descriptor duplicated -> best and second best are equal
    ref = np.concatenate([binary_descriptors, binary_descriptors])
    assert Matcher("MAT_BF", "SEL_KNN").run(binary_descriptors, ref) == []

def test_bf_norm_follows_family(float_descriptors):
    # Hamming distance is defined for 8-bit descriptors only
    with pytest.raises(cv2.error):
        Matcher("MAT_BF", descriptor_family="DES_BINARY").run(float_descriptors, float_descriptors)
    assert len(Matcher("MAT_BF", descriptor_family="DES_HOG").run(float_descriptors, float_descriptors)) == 40

def test_bf_hog_matching(float_descriptors):
    query = float_descriptors + 0.001
    matches = Matcher("MAT_BF", "SEL_NN", descriptor_family="DES_HOG").run(query, float_descriptors)
    assert all(m.queryIdx == m.trainIdx for m in matches)

def test_flann_converts_binary(binary_descriptors):
    matcher = Matcher("MAT_FLANN", "SEL_KNN", index_params={"algorithm": 0})
    matches = matcher.run(binary_descriptors, binary_descriptors)
    assert len(matches) == len(binary_descriptors)
    assert all(m.queryIdx == m.trainIdx for m in matches)

def test_flann_nn(float_descriptors):
    matches = Matcher("MAT_FLANN", "SEL_NN", index_params={"algorithm": 0}).run(
        float_descriptors, float_descriptors)
    assert all(m.queryIdx == m.trainIdx for m in matches)

def test_knn_single_reference(binary_descriptors):
    # Only one neighbour available, nothing passes the ratio test
    assert Matcher("MAT_BF", "SEL_KNN").run(binary_descriptors, binary_descriptors[:1]) == []

def test_flann_knn_single_reference(binary_descriptors):
    matcher = Matcher("MAT_FLANN", "SEL_KNN")
    assert matcher.run(binary_descriptors, binary_descriptors[:1]) == []

def test_flann_knn_single_float_reference():
    rng = np.random.default_rng(1)
    previous = rng.uniform(0, 1, size=(1, 128)).astype(np.float32)
    current = rng.uniform(0, 1, size=(5, 128)).astype(np.float32)
    assert Matcher("MAT_FLANN", "SEL_KNN", descriptor_family="DES_HOG").run(current, previous) == []

def test_empty_inputs(binary_descriptors):
    matcher = Matcher("MAT_BF", "SEL_KNN")
    assert matcher.run(None, binary_descriptors) == []
    assert matcher.run(binary_descriptors, None) == []
    assert matcher.run(binary_descriptors[:0], binary_descriptors) == []

@pytest.mark.parametrize("kwargs", [
    {"matcher_type": "MAT_KD"},
    {"selector_type": "SEL_ALL"},
    {"descriptor_family": "DES_FLOAT"},
    {"selector_type": "SEL_KNN", "cross_check": True},
])
def test_invalid_config(kwargs):
    with pytest.raises(AssertionError):
        Matcher(**kwargs)

def test_cross_check(binary_descriptors):
    matches = Matcher("MAT_BF", "SEL_NN", cross_check=True).run(binary_descriptors, binary_descriptors)
    assert len(matches) == len(binary_descriptors)

def test_json_round_trip():
    matcher = Matcher("MAT_FLANN", "SEL_KNN", descriptor_family="DES_HOG", ratio_th=0.7)
    restored = Matcher.from_json(matcher.to_json())

    assert restored.to_json() == matcher.to_json()
    assert restored.ratio_th == 0.7
