from kptrack.features.nms import keypoint_overlap, suppress_non_maxima
from kptrack.features.detectors import Detector, DEFINED_DETECTORS
from kptrack.features.descriptors import Descriptor, DEFINED_DESCRIPTORS, descriptor_family, is_compatible
from kptrack.features.matchers import Matcher, filter_ratio
