import logging

import torch

from .pinhole import PinholeCamera
from .protocol import LinearizableCamera

logger = logging.getLogger(__name__)


def linearize_camera(
    camera, src_cols: int, src_rows: int, dst_cols: int, dst_rows: int
) -> PinholeCamera:
    """Build the distortion-free pinhole counterpart of a camera

    The result keeps the rotation and center of ``camera``; its intrinsics are
    rescaled from the source image extent to the destination extent.

    Args:
        camera: any model exposing K, R and center
        src_cols, src_rows: extent of the image seen by ``camera``
        dst_cols, dst_rows: extent of the linearized image
    Return:
        undistorted PinholeCamera
    """
    if not isinstance(camera, LinearizableCamera):
        raise TypeError(
            f"cannot linearize {type(camera).__name__}: K, R and center are required"
        )
    for name, value in (
        ("src_cols", src_cols),
        ("src_rows", src_rows),
        ("dst_cols", dst_cols),
        ("dst_rows", dst_rows),
    ):
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    K = torch.as_tensor(camera.K)
    scale = torch.diag(
        torch.tensor(
            [dst_cols / src_cols, dst_rows / src_rows, 1.0], dtype=K.dtype
        )
    )
    linear = PinholeCamera(
        scale @ K, R=camera.R, center=camera.center, dtype=K.dtype
    )
    logger.debug(
        "linearized %r (%dx%d) -> %r (%dx%d)",
        camera,
        src_cols,
        src_rows,
        linear,
        dst_cols,
        dst_rows,
    )
    return linear
