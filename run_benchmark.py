import pandas as pd

from tqdm import tqdm
from loguru import logger

import argparse
from pathlib import Path

from kptrack import io, utils
from kptrack.features.detectors import DEFINED_DETECTORS
from kptrack.features.descriptors import DEFINED_DESCRIPTORS, is_compatible
from kptrack.features.matchers import Matcher
from kptrack.tracking import FeatureTracker, VEHICLE_ROI

def main(data_p: Path, first: int = 0, last: int = None, focus_vehicle: bool = True,
         out_p: Path = None, verbosity: int = 1):
    # Load sequence once
    images = [io.load_image(p) for p in io.list_images(data_p, first=first, last=last)]
    assert len(images) > 1, logger.error(f"Need at least two images in {str(data_p)}!")

    # Every supported combination
    combinations = [(det, des) for det in DEFINED_DETECTORS for des in DEFINED_DESCRIPTORS
                    if is_compatible(det, des)]

    results = []
    for det, des in tqdm(
        combinations, desc=utils.tqdm_description("run_benchmark", "Benchmark"),
        disable=verbosity != 1):

        tracker = FeatureTracker(det, des, roi=VEHICLE_ROI if focus_vehicle else None, verbosity=0)
        tracker.matcher = Matcher("MAT_BF", "SEL_KNN", descriptor_family=tracker.descriptor.family)

        stats = [s.to_dict() for s in tracker.run_sequence(images)]
        frame_stats = pd.DataFrame(stats)
        results.append({
            "detector": det,
            "descriptor": des,
            "keypoints": frame_stats["keypoints"].mean(),
            "mean_size": frame_stats["mean_size"].mean(),
            "matches": frame_stats["matches"].iloc[1:].mean(),
            "detect_ms": frame_stats["detect_ms"].mean(),
            "describe_ms": frame_stats["describe_ms"].mean(),
            "total_ms": frame_stats["total_ms"].mean(),
        })

    # Print results
    results = pd.DataFrame(results).sort_values("total_ms")
    print(results.to_string(index=False))

    if out_p is not None:
        results.to_csv(out_p, index=False)
        logger.info(f"Saved results to {str(out_p)}.")

def args_parser():
    parser = argparse.ArgumentParser(
        description="Benchmark all detector and descriptor combinations on an image sequence.")

    parser.add_argument(
        "--data", type=str, required=False, default="images/KITTI/2011_09_26/image_00/data",
        help="Path to a directory with images. Default is 'images/KITTI/2011_09_26/image_00/data'.")

    parser.add_argument("--first", type=int, default=0)
    parser.add_argument("--last", type=int, default=9)
    parser.add_argument("--full-image", action="store_true",
                        help="Use keypoints of the whole image instead of the preceding vehicle only.")
    parser.add_argument("--out", type=str, default=None, help="Optional CSV output path.")

    parser.add_argument(
        "--verbosity", type=int, choices=[0, 1, 2], default=1)

    return parser.parse_args()

if __name__ == "__main__":
    args = args_parser()

    # Get params
    data_p = Path(args.data)
    out_p = Path(args.out) if args.out is not None else None
    verbosity = args.verbosity
    utils.configure_stdout(verbosity)

    # Verify path
    assert data_p.exists() and data_p.is_dir(), logger.error(
        f"Directory {str(data_p)} does not exist!")

    # Run main
    main(data_p, first=args.first, last=args.last, focus_vehicle=not args.full_image,
         out_p=out_p, verbosity=verbosity)
