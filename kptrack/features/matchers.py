import cv2
import numpy as np

from loguru import logger

from typing import List, Optional, Sequence

from kptrack.utils import Serializable, Timer

MATCHER_TYPES = ("MAT_BF", "MAT_FLANN")
SELECTOR_TYPES = ("SEL_NN", "SEL_KNN")

def filter_ratio(knn_matches:Sequence[Sequence[cv2.DMatch]], ratio_th:float=0.8) -> List[cv2.DMatch]:
    """
    Lowe's ratio test. Keeps the best match when it is clearly better than the second best.
    """
    good_matches = []
    for match in knn_matches:
        if len(match) < 2: continue
        m, n = match[0], match[1]
        if m.distance < ratio_th * n.distance:
            good_matches.append(m)
    return good_matches


class Matcher(Serializable):
    def __init__(self,
                 matcher_type:str="MAT_BF", selector_type:str="SEL_NN",
                 descriptor_family:str="DES_BINARY",
                 ratio_th:float=0.8, cross_check:bool=False,
                 index_params:dict={"algorithm": 1, "trees": 5},
                 search_params:dict={"checks": 50},
                 verbose:bool=False) -> None:
        assert matcher_type in MATCHER_TYPES, logger.error(
            f"Matcher {matcher_type} is not defined. Use one of {MATCHER_TYPES}")
        assert selector_type in SELECTOR_TYPES, logger.error(
            f"Selector {selector_type} is not defined. Use one of {SELECTOR_TYPES}")
        assert descriptor_family in ("DES_BINARY", "DES_HOG"), logger.error(
            f"Descriptor family {descriptor_family} is not defined. Use DES_BINARY or DES_HOG")
        assert not (cross_check and selector_type == "SEL_KNN"), logger.error(
            "Cross check supports only SEL_NN selection.")

        self.matcher_type = matcher_type
        self.selector_type = selector_type
        self.descriptor_family = descriptor_family
        self.ratio_th = ratio_th
        self.cross_check = cross_check
        self.index_params = dict(index_params)
        self.search_params = dict(search_params)
        self.verbose = verbose
        self.last_time_ms = 0.0

        # Init matcher
        if matcher_type == "MAT_BF":
            norm_type = cv2.NORM_L2 if descriptor_family == "DES_HOG" else cv2.NORM_HAMMING
            self.matcher = cv2.BFMatcher_create(norm_type, cross_check)
        else:
            self.matcher = cv2.FlannBasedMatcher(self.index_params, self.search_params)

    def _prepare(self, des:np.ndarray) -> np.ndarray:
        # FLANN kd-trees work on floats only
        if self.matcher_type == "MAT_FLANN" and des.dtype != np.float32:
            return des.astype(np.float32)
        return des

    def run(self, desc_source:Optional[np.ndarray], desc_ref:Optional[np.ndarray]) -> List[cv2.DMatch]:
        """
        Matches source descriptors against reference descriptors.

        Parameters:
        --------
        desc_source: np.ndarray
            Descriptors of the current frame (query).
        desc_ref: np.ndarray
            Descriptors of the previous frame (train).

        Returns:
        --------
        matches: List[cv2.DMatch]
            Selected matches.
        """
        if desc_source is None or desc_ref is None or len(desc_source) == 0 or len(desc_ref) == 0:
            if self.verbose: logger.warning("Empty descriptor set, nothing to match.")
            self.last_time_ms = 0.0
            return []

        desc_source = self._prepare(desc_source)
        desc_ref = self._prepare(desc_ref)

        with Timer() as t:
            if self.selector_type == "SEL_NN":
                matches = list(self.matcher.match(desc_source, desc_ref))
            else:
                # FLANN rejects k larger than the reference set
                knn_matches = self.matcher.knnMatch(desc_source, desc_ref, k=min(2, len(desc_ref)))
                matches = filter_ratio(knn_matches, self.ratio_th)
                if self.verbose: logger.info(f"# keypoints removed = {len(knn_matches) - len(matches)}")
        self.last_time_ms = t.ms

        if self.verbose: logger.info(
            f"{self.matcher_type}+{self.selector_type} {len(matches)} matches in {t.ms:.2f} ms")
        return matches

    def to_json(self) -> dict:
        return {
            "matcher_type": self.matcher_type,
            "selector_type": self.selector_type,
            "descriptor_family": self.descriptor_family,
            "ratio_th": self.ratio_th,
            "cross_check": self.cross_check,
            "index_params": self.index_params,
            "search_params": self.search_params,
            }

    @staticmethod
    def from_json(json:dict, verbose:bool=False) -> "Matcher":
        return Matcher(**json, verbose=verbose)
