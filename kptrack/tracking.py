import cv2
import numpy as np

from tqdm import tqdm
from loguru import logger

from typing import List, Optional, Tuple, Union

from kptrack.data import DataFrame, FrameBuffer, FrameStats
from kptrack.features.detectors import Detector
from kptrack.features.descriptors import Descriptor
from kptrack.features.matchers import Matcher
from kptrack.utils import Serializable, to_gray, tqdm_description

# Preceding vehicle in the KITTI highway sequence, (x, y, w, h)
VEHICLE_ROI = (535, 180, 180, 150)

def filter_roi(keypoints:List[cv2.KeyPoint], roi:Tuple[int, int, int, int]) -> List[cv2.KeyPoint]:
    """
    Keeps keypoints whose position lies inside the rectangle, borders included.
    """
    x, y, w, h = roi
    return [kp for kp in keypoints
            if x <= kp.pt[0] <= x + w and y <= kp.pt[1] <= y + h]

def limit_keypoints(keypoints:List[cv2.KeyPoint], max_keypoints:int) -> List[cv2.KeyPoint]:
    """
    Keeps the `max_keypoints` strongest keypoints.
    Ties keep detection order, Shi-Tomasi corners come sorted by quality with zero response.
    """
    if len(keypoints) <= max_keypoints:
        return keypoints
    return sorted(keypoints, key=lambda kp: -kp.response)[:max_keypoints]


class FeatureTracker(Serializable):
    """
    Detects, describes and matches keypoints between consecutive frames.
    """
    def __init__(self, detector: Union[str, Detector], descriptor: Union[str, Descriptor],
                 matcher: Optional[Matcher] = None,
                 detector_params: dict = {}, descriptor_params: dict = {},
                 roi: Optional[Tuple[int, int, int, int]] = None,
                 max_keypoints: Optional[int] = None,
                 buffer_size: int = 2,
                 verbosity: int = 1) -> None:
        self.verbosity = verbosity

        # Init detector
        self.detector = detector
        if isinstance(detector, str):
            self.detector = Detector(detector, detector_params, verbose=verbosity>1)

        # Init descriptor
        self.descriptor = descriptor
        if isinstance(descriptor, str):
            self.descriptor = Descriptor(descriptor, descriptor_params, verbose=verbosity>1)

        # Init matcher, norm follows the descriptor family
        self.matcher = matcher
        if matcher is None:
            self.matcher = Matcher("MAT_BF", "SEL_KNN", descriptor_family=self.descriptor.family,
                                   verbose=verbosity>1)

        self.roi = tuple(roi) if roi is not None else None
        self.max_keypoints = max_keypoints
        self.buffer = FrameBuffer(buffer_size)
        self._n_frames = 0

        if self.verbosity: logger.info(
            f"Created tracker with {self.detector.algorithm} detector, " +
            f"{self.descriptor.algorithm} descriptor and " +
            f"{self.matcher.matcher_type}+{self.matcher.selector_type} matcher.")

    def reset(self) -> None:
        self.buffer.clear()
        self._n_frames = 0

    def run(self, image: np.ndarray) -> FrameStats:
        """
        Processes the next image of the sequence.

        Parameters:
        --------
        image: np.ndarray
            Grayscale or BGR image.

        Returns:
        --------
        stats: FrameStats
            Keypoint and match counts with per-stage timings.
        """
        frame = DataFrame(to_gray(image), index=self._n_frames)
        self._n_frames += 1
        self.buffer.push(frame)

        # Detect
        keypoints = self.detector.run(frame.image)
        frame.timings["detect"] = self.detector.last_time_ms
        if self.roi is not None:
            keypoints = filter_roi(keypoints, self.roi)
        if self.max_keypoints is not None:
            keypoints = limit_keypoints(keypoints, self.max_keypoints)

        # Describe
        frame.keypoints, frame.descriptors = self.descriptor.run(frame.image, keypoints)
        frame.timings["describe"] = self.descriptor.last_time_ms

        # Match with the previous frame
        frame.timings["match"] = 0.0
        previous = self.buffer.previous
        if previous is not None:
            frame.matches = self.matcher.run(frame.descriptors, previous.descriptors)
            frame.timings["match"] = self.matcher.last_time_ms

        mean_size = float(np.mean([kp.size for kp in frame.keypoints])) if frame.keypoints else 0.0
        stats = FrameStats(frame.index, len(frame.keypoints), len(frame.matches),
                           frame.timings["detect"], frame.timings["describe"], frame.timings["match"],
                           mean_size)

        if self.verbosity > 1: logger.info(
            f"Frame {frame.index}: {stats.n_keypoints} keypoints, {stats.n_matches} matches " +
            f"in {stats.total_ms:.2f} ms")
        return stats

    def run_sequence(self, images: List[np.ndarray]) -> List[FrameStats]:
        """
        Processes all images in order, continuing from the current buffer state.
        """
        stats = []
        for image in tqdm(
            images, desc=tqdm_description("kptrack.tracking", "Feature Tracking"),
            disable=self.verbosity != 1):

            stats.append(self.run(image))
        return stats

    def to_json(self) -> dict:
        return {
            "detector": self.detector.to_json(),
            "descriptor": self.descriptor.to_json(),
            "matcher": self.matcher.to_json(),
            "roi": list(self.roi) if self.roi is not None else None,
            "max_keypoints": self.max_keypoints,
            "buffer_size": self.buffer.size,
            "verbosity": self.verbosity,
            }

    @staticmethod
    def from_json(json: dict) -> "FeatureTracker":
        verbose = json.get("verbosity", 1) > 1
        descriptor = Descriptor.from_json(json["descriptor"], verbose=verbose)
        matcher = None
        if json.get("matcher") is not None:
            matcher = Matcher.from_json({"descriptor_family": descriptor.family, **json["matcher"]}, verbose=verbose)
        return FeatureTracker(
            detector=Detector.from_json(json["detector"], verbose=verbose),
            descriptor=descriptor,
            matcher=matcher,
            roi=json.get("roi"),
            max_keypoints=json.get("max_keypoints"),
            buffer_size=json.get("buffer_size", 2),
            verbosity=json.get("verbosity", 1),
            )
