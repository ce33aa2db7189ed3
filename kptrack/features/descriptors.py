import cv2
import numpy as np

from copy import deepcopy
from loguru import logger

from typing import List, Optional, Tuple

from kptrack.utils import Serializable, Timer, to_gray

DEFINED_DESCRIPTORS = {
    "BRISK": cv2.BRISK,
    "ORB": cv2.ORB,
    "AKAZE": cv2.AKAZE,
    "SIFT": cv2.SIFT,
    "ROOT_SIFT": cv2.SIFT, # Extra version of SIFT
    }

# Check if xfeatures2d is available
try:
    from cv2 import xfeatures2d
    DEFINED_DESCRIPTORS["BRIEF"] = xfeatures2d.BriefDescriptorExtractor
    DEFINED_DESCRIPTORS["FREAK"] = xfeatures2d.FREAK
except ImportError:
    logger.info("OpenCV-Contrib not installed. BRIEF and FREAK descriptors will not be available.")

DEFAULT_PARAMS = {
    "BRISK": {"thresh": 30, "octaves": 3, "patternScale": 1.0},
    }

# Gradient based descriptors are compared with L2, binary ones with Hamming
DESCRIPTOR_FAMILIES = {
    "BRISK": "DES_BINARY",
    "ORB": "DES_BINARY",
    "BRIEF": "DES_BINARY",
    "FREAK": "DES_BINARY",
    "AKAZE": "DES_BINARY",
    "SIFT": "DES_HOG",
    "ROOT_SIFT": "DES_HOG",
    }

def descriptor_family(algorithm:str) -> str:
    assert algorithm in DESCRIPTOR_FAMILIES, logger.error(
        f"Unknown descriptor {algorithm}. Use one of {list(DESCRIPTOR_FAMILIES.keys())}")
    return DESCRIPTOR_FAMILIES[algorithm]

def is_compatible(detector:str, descriptor:str) -> bool:
    """
    Whether OpenCV can describe keypoints of `detector` with `descriptor`.
    AKAZE descriptors need AKAZE keypoints (class_id and octave are used),
    ORB cannot handle the packed octaves of SIFT keypoints.
    """
    if descriptor == "AKAZE":
        return detector == "AKAZE"
    if descriptor == "ORB" and detector == "SIFT":
        return False
    return True


class Descriptor(Serializable):
    def __init__(self, algorithm:str, params:dict={}, verbose:bool=False) -> None:
        assert algorithm in DEFINED_DESCRIPTORS.keys(), logger.error(
            f"Descriptor algorithm {algorithm} is not defined. " +
            f"Use one of {list(DEFINED_DESCRIPTORS.keys())}")

        self.algorithm = algorithm
        self.params = deepcopy(params)
        self.verbose = verbose
        self.last_time_ms = 0.0

        create_params = {**DEFAULT_PARAMS.get(algorithm, {}), **self.params}
        self.descriptor = DEFINED_DESCRIPTORS[algorithm].create(**create_params)
        if self.verbose: logger.info(f"Created {self.algorithm} descriptor.")

    @property
    def family(self) -> str:
        return descriptor_family(self.algorithm)

    def run(self, image:np.ndarray, keypoints:List[cv2.KeyPoint]) -> Tuple[List[cv2.KeyPoint], Optional[np.ndarray]]:
        image = to_gray(image)

        # Compute descriptors
        with Timer() as t:
            kp, des = self.descriptor.compute(image, keypoints)
        self.last_time_ms = t.ms

        # If root sift -> process
        if self.algorithm == "ROOT_SIFT" and des is not None:
            des = des / (des.sum(axis=1, keepdims=True) + 1e-6)
            des = np.sqrt(des).astype(np.float32)

        if self.verbose: logger.info(f"{self.algorithm} descriptor extraction in {t.ms:.2f} ms")
        return list(kp), des

    def to_json(self) -> dict:
        return {
            "algorithm": self.algorithm,
            "params": self.params,
        }

    @staticmethod
    def from_json(json:dict, verbose:bool=False) -> "Descriptor":
        return Descriptor(json["algorithm"], json.get("params", {}), verbose=verbose)
