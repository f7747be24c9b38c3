"""Warping images between camera models that share an optical center.

``CameraTransform`` maps pixels of one camera to pixels of another by
casting the ray through a pixel of one camera and projecting it into the
other. The mapping only holds when both cameras have the same camera center
(focal point); a mismatch raises ``CameraCenterMismatchError``. Mapping a
distorted camera to its linearized counterpart removes lens distortion.
"""

import copy
import logging
from typing import Optional

import torch
from torch import Tensor

from .linearize import linearize_camera
from .pinhole import as_pixels
from .view import EdgeExtension, Interpolation, TransformView, transform

logger = logging.getLogger(__name__)


class CameraCenterMismatchError(ValueError):
    """Raised when two cameras disagree on the camera center of a pixel."""


class CameraTransform:
    """Coordinate mapper between a source and a destination camera.

    Both cameras are deep-copied on construction, so later changes to the
    caller's models do not affect the transform.

    Args:
        src_camera: Camera model of the source image.
        dst_camera: Camera model of the destination image.
    """

    __slots__ = ("_src_camera", "_dst_camera")

    def __init__(self, src_camera, dst_camera) -> None:
        self._src_camera = copy.deepcopy(src_camera)
        self._dst_camera = copy.deepcopy(dst_camera)
        logger.debug("camera transform %r -> %r", src_camera, dst_camera)

    @property
    def src_camera(self):
        return self._src_camera

    @property
    def dst_camera(self):
        return self._dst_camera

    def _check_centers(self, pixel: Tensor) -> None:
        src_center = torch.as_tensor(self._src_camera.camera_center(pixel))
        dst_center = torch.as_tensor(self._dst_camera.camera_center(pixel))
        dtype = torch.promote_types(src_center.dtype, dst_center.dtype)
        same = torch.all(src_center.to(dtype) == dst_center.to(dtype), dim=-1)
        if not bool(torch.all(same)):
            mismatch = ~torch.broadcast_to(same, pixel.shape[:-1]).reshape(-1)
            first = pixel.reshape(-1, 2)[mismatch][0]
            raise CameraCenterMismatchError(
                "CameraTransform requires both cameras to share the camera center: "
                f"{int(mismatch.sum())} pixel(s) disagree, first at {first.tolist()}"
            )

    def reverse(self, pixel) -> Tensor:
        """Map destination pixels [..., 2] back to source pixels [..., 2]."""
        pixel = as_pixels(pixel)
        self._check_centers(pixel)
        vec = self._dst_camera.pixel_to_vector(pixel)
        return self._src_camera.point_to_pixel(
            vec + self._src_camera.camera_center(pixel)
        )

    def forward(self, pixel) -> Tensor:
        """Map source pixels [..., 2] to destination pixels [..., 2]."""
        pixel = as_pixels(pixel)
        self._check_centers(pixel)
        vec = self._src_camera.pixel_to_vector(pixel)
        return self._dst_camera.point_to_pixel(
            vec + self._dst_camera.camera_center(pixel)
        )

    def __repr__(self) -> str:
        return f"CameraTransform({self._src_camera!r} -> {self._dst_camera!r})"


def camera_transform(
    image,
    src_camera,
    dst_camera,
    edge=EdgeExtension.ZERO,
    interp=Interpolation.BILINEAR,
    cols: Optional[int] = None,
    rows: Optional[int] = None,
) -> TransformView:
    """Lazily resample ``image`` from ``src_camera`` into ``dst_camera``

    Args:
        image: [H, W] or [C, H, W] image seen by ``src_camera``
        src_camera, dst_camera: camera models sharing a camera center
        edge: EdgeExtension policy, zero fill by default
        interp: Interpolation policy, bilinear by default
        cols, rows: output extent, the source extent by default
    Return:
        TransformView in the destination camera's geometry
    """
    ctx = CameraTransform(src_camera, dst_camera)
    return transform(image, ctx, edge, interp, cols=cols, rows=rows)


def linearize_camera_transform(
    image,
    src_camera,
    edge=EdgeExtension.ZERO,
    interp=Interpolation.BILINEAR,
) -> TransformView:
    """Lazily remove the lens distortion of ``src_camera`` from ``image``

    The output has the resolution of ``image`` and the geometry of
    ``linearize_camera(src_camera, W, H, W, H)``.
    """
    rows, cols = torch.as_tensor(image).shape[-2:]
    linear_camera = linearize_camera(src_camera, cols, rows, cols, rows)
    ctx = CameraTransform(src_camera, linear_camera)
    return transform(image, ctx, edge, interp)
