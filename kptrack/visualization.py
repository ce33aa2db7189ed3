import cv2
import numpy as np

from typing import List

from kptrack.data import DataFrame

def draw_keypoints(image:np.ndarray, keypoints:List[cv2.KeyPoint]) -> np.ndarray:
    return cv2.drawKeypoints(image, keypoints, None, color=(-1, -1, -1, -1),
                             flags=cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS)

def draw_matches(frame:DataFrame, previous:DataFrame, matches:List[cv2.DMatch]) -> np.ndarray:
    """
    Current frame on the left, previous frame on the right.
    """
    return cv2.drawMatches(frame.image, frame.keypoints, previous.image, previous.keypoints,
                           matches, None, matchColor=(-1, -1, -1, -1), singlePointColor=(-1, -1, -1, -1),
                           flags=cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS)

def resize_max(image:np.ndarray, max_dim:int=1280) -> np.ndarray:
    scale = max_dim / np.max(image.shape[:2])
    if scale >= 1:
        return image
    w, h = int(image.shape[1] * scale), int(image.shape[0] * scale)
    return cv2.resize(image, (w, h), interpolation=cv2.INTER_AREA)

def show(window_name:str, image:np.ndarray, wait:int=0) -> int:
    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL | cv2.WINDOW_KEEPRATIO)
    cv2.imshow(window_name, image)
    return cv2.waitKey(wait)
