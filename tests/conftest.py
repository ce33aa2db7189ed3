import cv2
import numpy as np
import pytest

def make_blocks(height=240, width=320, block=20, seed=0) -> np.ndarray:
    """
    Random black and white blocks, blurred slightly so corners get a gradient.
    """
    rng = np.random.default_rng(seed)
    grid = rng.integers(0, 2, size=(height // block, width // block), dtype=np.uint8) * 255
    image = np.kron(grid, np.ones((block, block), dtype=np.uint8))
    return cv2.GaussianBlur(image, (3, 3), 0)

def make_textured(height=240, width=320, seed=0) -> np.ndarray:
    """
    Blocks blended with smooth noise so that local patches are distinctive.
    """
    rng = np.random.default_rng(seed)
    noise = rng.uniform(0, 255, size=(height, width)).astype(np.float32)
    noise = cv2.GaussianBlur(noise, (0, 0), 3)
    noise = cv2.normalize(noise, None, 0, 255, cv2.NORM_MINMAX)
    image = 0.6 * make_blocks(height, width, seed=seed).astype(np.float32) + 0.4 * noise
    return image.astype(np.uint8)

@pytest.fixture
def blocks_image() -> np.ndarray:
    return make_blocks()

@pytest.fixture
def blocks_sequence() -> list:
    base = make_textured()
    # Constant shift of 2 px to the right per frame
    return [np.roll(base, 2 * i, axis=1) for i in range(3)]

@pytest.fixture
def square_image() -> np.ndarray:
    image = np.zeros((100, 100), dtype=np.uint8)
    image[30:70, 30:70] = 255
    return image
