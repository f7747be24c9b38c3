import math

import torch

from .distortion import distort_fisheye, radial_and_tangential_undistort
from .pinhole import _as_param, as_pixels


class FisheyeCamera:
    """Equidistant fisheye camera with four radial distortion parameters

    A camera-frame point at angle theta from the optical axis lands at
    distorted radius theta * (1 + k1 theta^2 + k2 theta^4 + k3 theta^6 + k4 theta^8)
    in normalized image coords.

    Args:
        K: cam2img intrinsics [3, 3]
        distortion: radial distortion parameters [k1, k2, k3, k4]
        R: world2cam rotation [3, 3], identity by default
        center: camera center in world coords [3], origin by default
    """

    def __init__(
        self,
        K,
        distortion=None,
        R=None,
        center=None,
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
        self.distortion = _as_param(
            torch.zeros(4) if distortion is None else distortion, (4,), "distortion", dtype
        )
        self.undistort_eps = undistort_eps
        self.undistort_iters = undistort_iters

    def pixel_to_vector(self, pixel) -> torch.Tensor:
        pixel = as_pixels(pixel, self.dtype)
        ones = torch.ones_like(pixel[..., :1])
        rays = torch.cat([pixel, ones], dim=-1) @ self.K_inv.T
        xy_distorted = rays[..., :2] / rays[..., 2:]
        xy = radial_and_tangential_undistort(
            xy_distorted,
            self.distortion,
            self.undistort_eps,
            self.undistort_iters,
            tangential=False,
        )
        theta = torch.sqrt(torch.sum(xy**2, dim=-1))
        theta = torch.clip(theta, 0.0, math.pi)
        sin_theta_over_theta = torch.sinc(theta / math.pi)
        directions = torch.stack(
            [
                xy[..., 0] * sin_theta_over_theta,
                xy[..., 1] * sin_theta_over_theta,
                torch.cos(theta),
            ],
            dim=-1,
        )
        return directions @ self.R

    def point_to_pixel(self, point) -> torch.Tensor:
        point = torch.as_tensor(point, dtype=self.dtype)
        cam_points = (point - self.center) @ self.R.T
        xy = distort_fisheye(cam_points, self.distortion)
        return xy @ self.K[:2, :2].T + self.K[:2, 2]

    def camera_center(self, pixel) -> torch.Tensor:
        pixel = as_pixels(pixel, self.dtype)
        return self.center.expand(*pixel.shape[:-1], 3)

    def __repr__(self) -> str:
        k = ", ".join(f"{v:g}" for v in self.distortion.tolist())
        return f"FisheyeCamera(f=({self.K[0, 0].item():g}, {self.K[1, 1].item():g}), k=({k}))"
