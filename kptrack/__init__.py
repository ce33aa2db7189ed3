from kptrack import io, utils, data, features, tracking, visualization
