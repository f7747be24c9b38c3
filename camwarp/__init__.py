from .calib import camera_from_calib, open_calib
from .warp import (
    CameraCenterMismatchError,
    CameraTransform,
    camera_transform,
    linearize_camera_transform,
)
from .config import ResampleConfig, load_config
from .core import reproject_images, undistort_images
from .fisheye import FisheyeCamera
from .linearize import linearize_camera
from .pinhole import PinholeCamera
from .protocol import CameraModel, CoordinateMapper
from .view import (
    BBox,
    EdgeExtension,
    Interpolation,
    TransformView,
    transform,
    transformed_bbox,
)
