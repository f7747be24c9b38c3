import logging
from typing import Optional, Sequence, Tuple

import torch
from torch import Tensor

from .warp import camera_transform, linearize_camera_transform
from .config import ResampleConfig

logger = logging.getLogger(__name__)


def reproject_images(
    images: Tensor,
    src_cameras: Sequence,
    dst_cameras: Sequence,
    config: Optional[ResampleConfig] = None,
    dst_size: Optional[Tuple[int, int]] = None,
) -> Tuple[Tensor, Tensor]:
    """Function to reproject a batch of images from source to destination cameras
    Args:
        images: [bs, C, H, W]
        src_cameras: bs camera models the images were taken with
        dst_cameras: bs camera models sharing the camera centers of src_cameras
        config: ResampleConfig, defaults when None
        dst_size: (width, height) of the output, the input size by default
    Return:
        reproj_imgs: [bs, C, h, w]
        reproj_masks: [bs, h, w] True where the source pixel lies inside the image
    """
    config = config or ResampleConfig()
    N = images.shape[0]
    if N == 0:
        raise ValueError("empty image batch")
    if len(src_cameras) != N or len(dst_cameras) != N:
        raise ValueError(
            f"got {N} images but {len(src_cameras)} source and "
            f"{len(dst_cameras)} destination cameras"
        )
    cols, rows = dst_size if dst_size is not None else (None, None)

    reproj_imgs, reproj_masks = [], []
    for i in range(N):
        view = camera_transform(
            images[i],
            src_cameras[i],
            dst_cameras[i],
            config.edge_extension,
            config.interpolation,
            cols=cols,
            rows=rows,
        )
        reproj_imgs.append(view.rasterize(config.tile_size))
        reproj_masks.append(view.coverage())

    logger.info("reprojected %d image(s) to %dx%d", N, view.cols, view.rows)
    return torch.stack(reproj_imgs, dim=0), torch.stack(reproj_masks, dim=0)


def undistort_images(
    images: Tensor,
    cameras: Sequence,
    config: Optional[ResampleConfig] = None,
) -> Tuple[Tensor, Tensor]:
    """Remove lens distortion from a batch of images [bs, C, H, W]

    Return:
        undistorted images [bs, C, H, W] and coverage masks [bs, H, W]
    """
    config = config or ResampleConfig()
    N = images.shape[0]
    if N == 0:
        raise ValueError("empty image batch")
    if len(cameras) != N:
        raise ValueError(f"got {N} images but {len(cameras)} cameras")

    undist_imgs, undist_masks = [], []
    for i in range(N):
        view = linearize_camera_transform(
            images[i], cameras[i], config.edge_extension, config.interpolation
        )
        undist_imgs.append(view.rasterize(config.tile_size))
        undist_masks.append(view.coverage())

    logger.info("undistorted %d image(s)", N)
    return torch.stack(undist_imgs, dim=0), torch.stack(undist_masks, dim=0)
