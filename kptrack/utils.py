# Fundamental third-party imports
import cv2
import numpy as np

# Built-in modules
import sys
from datetime import datetime

# Convenience imports
from loguru import logger


class Serializable:
    def to_json(self) -> dict:
        raise NotImplementedError("Serializable is an abstract class. Use a concrete implementation instead.")
    
    @staticmethod
    def from_json(json:dict):
        raise NotImplementedError("Serializable is an abstract class. Use a concrete implementation instead.")


class Timer:
    """
    Measures wall time of a block with OpenCV tick counters.
    
    Usage:
    --------
    >>> with Timer() as t:
    ...     detector.detect(image)
    >>> t.ms
    """
    def __init__(self) -> None:
        self.ticks = 0
    
    def __enter__(self) -> "Timer":
        self._start = cv2.getTickCount()
        return self
    
    def __exit__(self, *exc) -> None:
        self.ticks = cv2.getTickCount() - self._start
    
    @property
    def ms(self) -> float:
        return 1000.0 * self.ticks / cv2.getTickFrequency()


def to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 1:
        return image[..., 0]
    return image


class BColors:
    GREEN = '\033[32m'
    BOLD = '\033[1m'
    ENDC = '\033[0m'
    CYAN = '\033[36m'

def tqdm_description(file_name, process_name):
    """
    Convert tqdm appearance to loguru format
    """
    return (f"{BColors.GREEN}{datetime.now().strftime('%F %T.%f')[:-3]}{BColors.ENDC} | " +
            f"{BColors.BOLD}INFO{BColors.ENDC}     | " +
            f"{BColors.CYAN}{file_name}{BColors.ENDC} - " +
            f"{BColors.BOLD}{process_name}{BColors.ENDC}")

def configure_stdout(verbosity:int=1):
    """
    Set the logs to the desired appearance.
    Verbosity 0 keeps warnings only, 1 and above shows info.
    """
    logger.remove()
    logger.add(sys.stderr, level="INFO" if verbosity else "WARNING", format= \
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | " + \
        "<level>{level: <8}</level> | " + \
        "<cyan>{module}</cyan> - <level>{message}</level>")
