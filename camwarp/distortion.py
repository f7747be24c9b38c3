from typing import Tuple

import torch


def distort_radial_tangential(xy: torch.Tensor, distortion: torch.Tensor) -> torch.Tensor:
    """Apply radial(4) + tangential(2) distortion to normalized image coords
    Args:
        xy: undistorted normalized coords [..., 2]
        distortion: [k1, k2, k3, k4, p1, p2]
    Return:
        distorted normalized coords [..., 2]
    """
    x = xy[..., 0]
    y = xy[..., 1]
    k1, k2, k3, k4, p1, p2 = distortion.unbind(-1)
    r = x * x + y * y
    d = 1.0 + r * (k1 + r * (k2 + r * (k3 + r * k4)))
    xd = d * x + 2 * p1 * x * y + p2 * (r + 2 * x * x)
    yd = d * y + 2 * p2 * x * y + p1 * (r + 2 * y * y)
    return torch.stack([xd, yd], dim=-1)


def distort_fisheye(pts: torch.Tensor, distortion: torch.Tensor) -> torch.Tensor:
    """
    Args:
        pts [torch.tensor]: (..., 3) points in camera frame
        distortion [torch.tensor]: (4,) radial parameters [k1, k2, k3, k4]
    Return:
        xy [torch.tensor]: (..., 2) distorted normalized coords for the equidistant model
    """
    r = torch.sqrt(torch.pow(pts[..., 0], 2) + torch.pow(pts[..., 1], 2))
    theta = torch.atan2(r, pts[..., 2])
    theta_d = theta * (
        1
        + distortion[0] * torch.pow(theta, 2)
        + distortion[1] * torch.pow(theta, 4)
        + distortion[2] * torch.pow(theta, 6)
        + distortion[3] * torch.pow(theta, 8)
    )
    # on the optical axis theta_d / r tends to 1 / z
    on_axis = r <= 1e-12
    scale = torch.where(
        on_axis, 1.0 / pts[..., 2], theta_d / torch.where(on_axis, torch.ones_like(r), r)
    )
    return pts[..., :2] * scale.unsqueeze(-1)


def radial_and_tangential_undistort(
    coords: torch.Tensor,
    distortion_params: torch.Tensor,
    eps: float = 1e-3,
    max_iterations: int = 10,
    tangential: bool = True,
) -> torch.Tensor:
    """Computes undistorted coords given opencv distortion parameters.
    Adapted from MultiNeRF
    https://github.com/google-research/multinerf/blob/b02228160d3179300c7d499dca28cb9ca3677f32/internal/camera_utils.py#L477-L509

    Args:
        coords: The distorted coordinates.
        distortion_params: The distortion parameters [k1, k2, k3, k4, p1, p2],
            or [k1, k2, k3, k4] when tangential is False.
        eps: The epsilon for the jacobian determinant.
        max_iterations: The maximum number of iterations to perform.
        tangential: Use the radial(4) + tangential(2) residual. The radial only
            residual inverts the fisheye polynomial in theta space.

    Returns:
        The undistorted coordinates.
    """
    residual_fn = (
        _compute_residual_and_jacobian
        if tangential
        else _compute_residual_and_jacobian_simplified
    )

    # Initialize from the distorted point.
    x = coords[..., 0]
    y = coords[..., 1]

    for _ in range(max_iterations):
        fx, fy, fx_x, fx_y, fy_x, fy_y = residual_fn(
            x=x,
            y=y,
            xd=coords[..., 0],
            yd=coords[..., 1],
            distortion_params=distortion_params,
        )
        denominator = fy_x * fx_y - fx_x * fy_y
        x_numerator = fx * fy_y - fy * fx_y
        y_numerator = fy * fx_x - fx * fy_x
        step_x = torch.where(
            torch.abs(denominator) > eps,
            x_numerator / denominator,
            torch.zeros_like(denominator),
        )
        step_y = torch.where(
            torch.abs(denominator) > eps,
            y_numerator / denominator,
            torch.zeros_like(denominator),
        )

        x = x + step_x
        y = y + step_y

    return torch.stack([x, y], dim=-1)


def _compute_residual_and_jacobian_simplified(
    x: torch.Tensor,
    y: torch.Tensor,
    xd: torch.Tensor,
    yd: torch.Tensor,
    distortion_params: torch.Tensor,
) -> Tuple[
    torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor
]:
    """Radial only version of _compute_residual_and_jacobian()."""
    k1 = distortion_params[..., 0]
    k2 = distortion_params[..., 1]
    k3 = distortion_params[..., 2]
    k4 = distortion_params[..., 3]
    r = x * x + y * y
    d = 1.0 + r * (k1 + r * (k2 + r * (k3 + r * k4)))
    fx = d * x - xd
    fy = d * y - yd
    # Compute derivative of d over [x, y]
    d_r = k1 + r * (2.0 * k2 + r * (3.0 * k3 + r * 4.0 * k4))
    d_x = 2.0 * x * d_r
    d_y = 2.0 * y * d_r
    # Compute derivative of fx over x and y.
    fx_x = d + d_x * x
    fx_y = d_y * x
    # Compute derivative of fy over x and y.
    fy_x = d_x * y
    fy_y = d + d_y * y
    return fx, fy, fx_x, fx_y, fy_x, fy_y


def _compute_residual_and_jacobian(
    x: torch.Tensor,
    y: torch.Tensor,
    xd: torch.Tensor,
    yd: torch.Tensor,
    distortion_params: torch.Tensor,
) -> Tuple[
    torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor, torch.Tensor
]:
    """Auxiliary function of radial_and_tangential_undistort() that computes residuals and jacobians.

    Args:
        x: The updated x coordinates.
        y: The updated y coordinates.
        xd: The distorted x coordinates.
        yd: The distorted y coordinates.
        distortion_params: The distortion parameters [k1, k2, k3, k4, p1, p2].

    Returns:
        The residuals (fx, fy) and jacobians (fx_x, fx_y, fy_x, fy_y).
    """

    k1 = distortion_params[..., 0]
    k2 = distortion_params[..., 1]
    k3 = distortion_params[..., 2]
    k4 = distortion_params[..., 3]
    p1 = distortion_params[..., 4]
    p2 = distortion_params[..., 5]

    # let r(x, y) = x^2 + y^2;
    #     d(x, y) = 1 + k1 * r(x, y) + k2 * r(x, y) ^2 + k3 * r(x, y)^3 +
    #                   k4 * r(x, y)^4;
    r = x * x + y * y
    d = 1.0 + r * (k1 + r * (k2 + r * (k3 + r * k4)))

    # fx(x, y) = x * d(x, y) + 2 * p1 * x * y + p2 * (r(x, y) + 2 * x^2) - xd;
    # fy(x, y) = y * d(x, y) + 2 * p2 * x * y + p1 * (r(x, y) + 2 * y^2) - yd;
    fx = d * x + 2 * p1 * x * y + p2 * (r + 2 * x * x) - xd
    fy = d * y + 2 * p2 * x * y + p1 * (r + 2 * y * y) - yd

    # Compute derivative of d over [x, y]
    d_r = k1 + r * (2.0 * k2 + r * (3.0 * k3 + r * 4.0 * k4))
    d_x = 2.0 * x * d_r
    d_y = 2.0 * y * d_r

    # Compute derivative of fx over x and y.
    fx_x = d + d_x * x + 2.0 * p1 * y + 6.0 * p2 * x
    fx_y = d_y * x + 2.0 * p1 * x + 2.0 * p2 * y

    # Compute derivative of fy over x and y.
    fy_x = d_x * y + 2.0 * p2 * y + 2.0 * p1 * x
    fy_y = d + d_y * y + 2.0 * p2 * x + 6.0 * p1 * y

    return fx, fy, fx_x, fx_y, fy_x, fy_y
