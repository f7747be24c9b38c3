from typing import Optional

import torch

from .distortion import distort_radial_tangential, radial_and_tangential_undistort


def _as_param(value, shape, name: str, dtype: torch.dtype) -> torch.Tensor:
    tensor = torch.as_tensor(value, dtype=dtype).clone()
    if tuple(tensor.shape) != shape:
        raise ValueError(f"{name} must have shape {shape}, got {tuple(tensor.shape)}")
    return tensor


def as_pixels(pixel, dtype: Optional[torch.dtype] = None) -> torch.Tensor:
    """Convert (u, v) pixel coords of shape [..., 2] to a float tensor

    Without ``dtype`` float input keeps its precision and integer input becomes float64.
    """
    pixel = torch.as_tensor(pixel, dtype=dtype)
    if not torch.is_floating_point(pixel):
        pixel = pixel.to(torch.float64)
    if pixel.shape[-1:] != (2,):
        raise ValueError(f"pixel coords must have shape [..., 2], got {tuple(pixel.shape)}")
    return pixel


class PinholeCamera:
    """Central perspective camera with optional radial and tangential lens distortion

    Args:
        K: cam2img intrinsics [3, 3]
        R: world2cam rotation [3, 3], identity by default
        center: camera center in world coords [3], origin by default
        distortion: [k1, k2, k3, k4, p1, p2] or None for an undistorted camera
        undistort_eps: jacobian epsilon for the Newton undistortion
        undistort_iters: Newton iterations used by pixel_to_vector
    """

    def __init__(
        self,
        K,
        R=None,
        center=None,
        distortion=None,
        dtype: torch.dtype = torch.float64,
        undistort_eps: float = 1e-9,
        undistort_iters: int = 20,
    ):
        self.dtype = dtype
        self.K = _as_param(K, (3, 3), "K", dtype)
        self.K_inv = torch.linalg.inv(self.K)
        self.R = _as_param(torch.eye(3) if R is None else R, (3, 3), "R", dtype)
        self.center = _as_param(
            torch.zeros(3) if center is None else center, (3,), "center", dtype
        )
        self.distortion = (
            None if distortion is None else _as_param(distortion, (6,), "distortion", dtype)
        )
        self.undistort_eps = undistort_eps
        self.undistort_iters = undistort_iters

    @property
    def is_distorted(self) -> bool:
        return self.distortion is not None and bool(torch.any(self.distortion != 0))

    def pixel_to_vector(self, pixel) -> torch.Tensor:
        """
        Args:
            pixel: pixel coords [..., 2]
        Return:
            unit ray directions in world coords [..., 3]
        """
        pixel = as_pixels(pixel, self.dtype)
        ones = torch.ones_like(pixel[..., :1])
        rays = torch.cat([pixel, ones], dim=-1) @ self.K_inv.T
        xy = rays[..., :2] / rays[..., 2:]
        if self.is_distorted:
            xy = radial_and_tangential_undistort(
                xy, self.distortion, self.undistort_eps, self.undistort_iters
            )
        directions = torch.cat([xy, ones], dim=-1)
        directions = directions / torch.linalg.norm(directions, dim=-1, keepdim=True)
        return directions @ self.R

    def point_to_pixel(self, point) -> torch.Tensor:
        """
        Args:
            point: points in world coords [..., 3]
        Return:
            pixel coords [..., 2], NaN for points on or behind the camera plane
        """
        point = torch.as_tensor(point, dtype=self.dtype)
        cam_points = (point - self.center) @ self.R.T
        z = cam_points[..., 2:]
        xy = cam_points[..., :2] / z
        if self.is_distorted:
            xy = distort_radial_tangential(xy, self.distortion)
        pix = xy @ self.K[:2, :2].T + self.K[:2, 2]
        return torch.where(z > 0, pix, torch.full_like(pix, float("nan")))

    def camera_center(self, pixel) -> torch.Tensor:
        pixel = as_pixels(pixel, self.dtype)
        return self.center.expand(*pixel.shape[:-1], 3)

    def __repr__(self) -> str:
        fx, fy = self.K[0, 0].item(), self.K[1, 1].item()
        cx, cy = self.K[0, 2].item(), self.K[1, 2].item()
        return (
            f"PinholeCamera(f=({fx:g}, {fy:g}), c=({cx:g}, {cy:g}), "
            f"distorted={self.is_distorted})"
        )
