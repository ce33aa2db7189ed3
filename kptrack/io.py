import cv2
import numpy as np

from loguru import logger

import json
from pathlib import Path
from typing import List, Optional

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp")

def validate_file(path:Path):
    assert path.exists() and path.is_file(), logger.warning(f"No file: {str(path)}!")

def validate_dir(path:Path):
    assert path.exists() and path.is_dir(), logger.warning(f"Path: {str(path)} is not a directory!")

def load_image(path:Path, gray:bool=True) -> np.ndarray:
    validate_file(path)
    flags = cv2.IMREAD_GRAYSCALE if gray else cv2.IMREAD_COLOR
    image = cv2.imread(str(path), flags)
    assert image is not None, logger.error(f"Could not decode image {str(path)}!")
    return image

def list_images(path:Path, pattern:str="*", first:int=0, last:Optional[int]=None) -> List[Path]:
    """
    Sorted image files of a directory, sliced to [first, last] inclusive.
    """
    validate_dir(path)
    images = sorted(p for p in path.glob(pattern) if p.suffix.lower() in IMAGE_EXTENSIONS)
    stop = None if last is None else last + 1
    return images[first:stop]

def load_json(path:Path) -> dict:
    validate_file(path)
    
    with open(path, "r") as f:
        data = json.load(f)
    return data

def save_json(path:Path, data:dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=4)
