import cv2
import numpy as np

from collections import deque
from typing import Dict, Iterator, List, Optional

class DataFrame:
    def __init__(self, image: np.ndarray, index: int = 0) -> None:
        # Public
        self.index = index
        self.image = image
        self.keypoints: List[cv2.KeyPoint] = []
        self.descriptors: Optional[np.ndarray] = None
        # Matches with the previous frame, queryIdx -> this frame, trainIdx -> previous
        self.matches: List[cv2.DMatch] = []
        self.timings: Dict[str, float] = {}

    @property
    def keypoints_np(self) -> np.ndarray:
        """
        Keypoint positions as (N, 2) array of (x, y).
        """
        if len(self.keypoints) == 0:
            return np.zeros((0, 2), dtype=np.float32)
        return np.array([kp.pt for kp in self.keypoints], dtype=np.float32)

class FrameBuffer:
    """
    Ring buffer of the most recent frames. The oldest frame is dropped when full.
    """
    def __init__(self, size: int = 2) -> None:
        assert size >= 1, f"Buffer size must be positive, got {size}."
        self.size = size
        self._frames = deque(maxlen=size)

    def push(self, frame: DataFrame) -> None:
        self._frames.append(frame)

    @property
    def current(self) -> Optional[DataFrame]:
        return self._frames[-1] if len(self._frames) > 0 else None

    @property
    def previous(self) -> Optional[DataFrame]:
        return self._frames[-2] if len(self._frames) > 1 else None

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[DataFrame]:
        return iter(self._frames)

class FrameStats:
    def __init__(self, index: int, n_keypoints: int, n_matches: int,
                 detect_ms: float, describe_ms: float, match_ms: float,
                 mean_size: float) -> None:
        self.index = index
        self.n_keypoints = n_keypoints
        self.n_matches = n_matches
        self.detect_ms = detect_ms
        self.describe_ms = describe_ms
        self.match_ms = match_ms
        self.mean_size = mean_size

    @property
    def total_ms(self) -> float:
        return self.detect_ms + self.describe_ms + self.match_ms

    def to_dict(self) -> dict:
        return {
            "frame": self.index,
            "keypoints": self.n_keypoints,
            "matches": self.n_matches,
            "detect_ms": self.detect_ms,
            "describe_ms": self.describe_ms,
            "match_ms": self.match_ms,
            "total_ms": self.total_ms,
            "mean_size": self.mean_size,
            }
