import pandas as pd

from loguru import logger

import argparse
from pathlib import Path

from kptrack import io, utils, visualization
from kptrack.features.descriptors import descriptor_family
from kptrack.features.matchers import Matcher
from kptrack.tracking import FeatureTracker, VEHICLE_ROI

def build_tracker(detector: str, descriptor: str, matcher: str, selector: str,
                  focus_vehicle: bool = False, max_keypoints: int = None,
                  config_p: Path = None, verbosity: int = 1) -> FeatureTracker:
    # Config file replaces the component options, verbosity always comes from the command line
    if config_p is not None:
        return FeatureTracker.from_json({**io.load_json(config_p), "verbosity": verbosity})

    return FeatureTracker(
        detector=detector, descriptor=descriptor,
        matcher=Matcher(matcher, selector, descriptor_family=descriptor_family(descriptor), verbose=verbosity > 1),
        roi=VEHICLE_ROI if focus_vehicle else None, max_keypoints=max_keypoints,
        verbosity=verbosity)

def main(data_p: Path, detector: str, descriptor: str, matcher: str, selector: str,
         focus_vehicle: bool = False, max_keypoints: int = None,
         first: int = 0, last: int = None, config_p: Path = None,
         visualize: bool = False, verbosity: int = 1):
    tracker = build_tracker(detector, descriptor, matcher, selector,
                            focus_vehicle=focus_vehicle, max_keypoints=max_keypoints,
                            config_p=config_p, verbosity=verbosity)

    # Run over the sequence
    images_p = io.list_images(data_p, first=first, last=last)
    assert len(images_p) > 0, logger.error(f"No images found in {str(data_p)}!")

    stats = []
    for image_p in images_p:
        stats.append(tracker.run(io.load_image(image_p)))

        if visualize:
            frame, previous = tracker.buffer.current, tracker.buffer.previous
            if previous is None:
                display = visualization.draw_keypoints(frame.image, frame.keypoints)
            else:
                display = visualization.draw_matches(frame, previous, frame.matches)
            visualization.show("kptrack", visualization.resize_max(display))

    # Print results
    results = pd.DataFrame([s.to_dict() for s in stats])
    print(results)
    logger.info(f"Mean: {results['keypoints'].mean():.1f} keypoints, " +
                f"{results['matches'].iloc[1:].mean():.1f} matches, " +
                f"{results['total_ms'].mean():.2f} ms per frame.")

def args_parser():
    parser = argparse.ArgumentParser(
        description="Track keypoints over an image sequence with a detector, descriptor and matcher.")

    parser.add_argument(
        "--data", type=str, required=False, default="images/KITTI/2011_09_26/image_00/data",
        help="Path to a directory with images. Default is 'images/KITTI/2011_09_26/image_00/data'.")

    parser.add_argument("--detector", type=str, default="SHITOMASI")
    parser.add_argument("--descriptor", type=str, default="BRISK")
    parser.add_argument("--matcher", type=str, choices=["MAT_BF", "MAT_FLANN"], default="MAT_BF")
    parser.add_argument("--selector", type=str, choices=["SEL_NN", "SEL_KNN"], default="SEL_KNN")

    parser.add_argument(
        "--config", type=str, required=False, default=None,
        help="JSON tracker configuration. Overrides detector, descriptor and matcher options.")

    parser.add_argument("--focus-vehicle", action="store_true",
                        help="Keep only keypoints on the preceding vehicle.")
    parser.add_argument("--max-keypoints", type=int, default=None)
    parser.add_argument("--first", type=int, default=0)
    parser.add_argument("--last", type=int, default=9)
    parser.add_argument("--visualize", action="store_true")

    parser.add_argument(
        "--verbosity", type=int, choices=[0, 1, 2], default=1)

    return parser.parse_args()

if __name__ == "__main__":
    args = args_parser()

    # Get params
    data_p = Path(args.data)
    config_p = Path(args.config) if args.config is not None else None
    verbosity = args.verbosity
    utils.configure_stdout(verbosity)

    # Verify path
    assert data_p.exists() and data_p.is_dir(), logger.error(
        f"Directory {str(data_p)} does not exist!")

    # Run main
    main(data_p, args.detector, args.descriptor, args.matcher, args.selector,
         focus_vehicle=args.focus_vehicle, max_keypoints=args.max_keypoints,
         first=args.first, last=args.last, config_p=config_p,
         visualize=args.visualize, verbosity=verbosity)
