from setuptools import setup, find_packages

setup(
    name="kptrack",
    version="0.1.0",    
    description="2D keypoint detection, description and matching benchmark over camera sequences.",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "opencv-contrib-python<5",
        "loguru",
        "tqdm",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
