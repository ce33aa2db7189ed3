import cv2
import numpy as np

from copy import deepcopy
from loguru import logger

from typing import List

from kptrack.utils import Serializable, Timer, to_gray
from kptrack.features.nms import suppress_non_maxima


class ShiTomasiDetector:
    """
    Shi-Tomasi corners from `cv2.goodFeaturesToTrack`.
    The number of corners is bounded by the image area over the minimal distance.
    """
    def __init__(self, blockSize:int=4, maxOverlap:float=0.0,
                 qualityLevel:float=0.01, k:float=0.04) -> None:
        self.block_size = blockSize
        self.max_overlap = maxOverlap
        self.quality_level = qualityLevel
        self.k = k

    @classmethod
    def create(cls, **params) -> "ShiTomasiDetector":
        return cls(**params)

    def detect(self, image:np.ndarray) -> List[cv2.KeyPoint]:
        min_distance = (1.0 - self.max_overlap) * self.block_size
        max_corners = int(image.shape[0] * image.shape[1] / max(1.0, min_distance))

        corners = cv2.goodFeaturesToTrack(image, max_corners, self.quality_level, min_distance,
                                          mask=None, blockSize=self.block_size,
                                          useHarrisDetector=False, k=self.k)
        if corners is None:
            return []
        return [cv2.KeyPoint(float(x), float(y), float(self.block_size)) for x, y in corners.reshape(-1, 2)]


class HarrisDetector:
    """
    Harris corners with non-maximum suppression over the normalized response.
    """
    def __init__(self, blockSize:int=2, apertureSize:int=3, k:float=0.04,
                 minResponse:float=100) -> None:
        self.block_size = blockSize
        self.aperture_size = apertureSize
        self.k = k
        self.min_response = minResponse

    @classmethod
    def create(cls, **params) -> "HarrisDetector":
        return cls(**params)

    def response(self, image:np.ndarray) -> np.ndarray:
        """
        Harris response scaled to [0, 255].
        """
        dst = cv2.cornerHarris(image, self.block_size, self.aperture_size, self.k, borderType=cv2.BORDER_DEFAULT)
        dst_norm = cv2.normalize(dst, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_32FC1)
        return dst_norm

    def detect(self, image:np.ndarray) -> List[cv2.KeyPoint]:
        return suppress_non_maxima(self.response(image), self.min_response, 2 * self.aperture_size)


DEFINED_DETECTORS = {
    "SHITOMASI": ShiTomasiDetector,
    "HARRIS": HarrisDetector,
    "FAST": cv2.FastFeatureDetector,
    "BRISK": cv2.BRISK,
    "ORB": cv2.ORB,
    "AKAZE": cv2.AKAZE,
    "SIFT": cv2.SIFT,
    }

DEFAULT_PARAMS = {
    "FAST": {"threshold": 30, "nonmaxSuppression": True, "type": cv2.FAST_FEATURE_DETECTOR_TYPE_9_16},
    }


class Detector(Serializable):
    def __init__(self, algorithm:str, params:dict={}, verbose:bool=False) -> None:
        assert algorithm in DEFINED_DETECTORS.keys(), logger.error(
            f"Detector algorithm {algorithm} is not defined. " +
            f"Use one of {list(DEFINED_DETECTORS.keys())}")

        self.algorithm = algorithm
        self.params = deepcopy(params)
        self.verbose = verbose
        self.last_time_ms = 0.0

        create_params = {**DEFAULT_PARAMS.get(algorithm, {}), **self.params}
        self.detector = DEFINED_DETECTORS[algorithm].create(**create_params)
        if self.verbose: logger.info(f"Created {self.algorithm} detector.")

    def run(self, image:np.ndarray) -> List[cv2.KeyPoint]:
        image = to_gray(image)
        with Timer() as t:
            kp = list(self.detector.detect(image))
        self.last_time_ms = t.ms

        if self.verbose: logger.info(
            f"{self.algorithm} detection with n={len(kp)} keypoints in {t.ms:.2f} ms")
        return kp

    def to_json(self) -> dict:
        return {
            "algorithm": self.algorithm,
            "params": self.params,
            }

    @staticmethod
    def from_json(json:dict, verbose:bool=False) -> "Detector":
        return Detector(json["algorithm"], json.get("params", {}), verbose=verbose)
