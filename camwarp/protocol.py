"""Structural interfaces shared by camera models and coordinate mappers."""

from typing import Protocol, runtime_checkable

import torch


@runtime_checkable
class CameraModel(Protocol):
    """Protocol for camera models usable with CameraTransform.

    Any class implementing the three methods below satisfies this protocol
    structurally. Implementations must be reentrant and must not mutate
    themselves when queried.
    """

    def pixel_to_vector(self, pixel: torch.Tensor) -> torch.Tensor:
        """Ray direction from the camera center through each pixel.

        Args:
            pixel: Pixel coordinates (u, v), shape (..., 2).

        Returns:
            Direction vectors in world frame, shape (..., 3).
        """
        ...

    def point_to_pixel(self, point: torch.Tensor) -> torch.Tensor:
        """Project world points to pixel coordinates, shape (..., 3) -> (..., 2)."""
        ...

    def camera_center(self, pixel: torch.Tensor) -> torch.Tensor:
        """Optical center used for each pixel, shape (..., 2) -> (..., 3)."""
        ...


@runtime_checkable
class LinearizableCamera(Protocol):
    """Camera exposing the parameters needed to build its pinhole counterpart.

    Attributes:
        K: Intrinsic matrix, shape (3, 3).
        R: World-to-camera rotation, shape (3, 3).
        center: Camera center in world frame, shape (3,).
    """

    K: torch.Tensor
    R: torch.Tensor
    center: torch.Tensor


@runtime_checkable
class CoordinateMapper(Protocol):
    """Pixel mapping consumed by the transform engine.

    ``reverse`` maps output pixels back to source pixels and is what the
    engine samples with. ``forward`` maps source pixels to output pixels.
    """

    def forward(self, pixel: torch.Tensor) -> torch.Tensor: ...

    def reverse(self, pixel: torch.Tensor) -> torch.Tensor: ...
