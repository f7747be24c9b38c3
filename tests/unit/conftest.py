"""Shared camera fixtures."""

import pytest
import torch

from camwarp import FisheyeCamera, PinholeCamera


@pytest.fixture
def K() -> torch.Tensor:
    return torch.tensor(
        [[500.0, 0.0, 320.0], [0.0, 500.0, 240.0], [0.0, 0.0, 1.0]],
        dtype=torch.float64,
    )


@pytest.fixture
def pinhole(K: torch.Tensor) -> PinholeCamera:
    """Undistorted pinhole at the world origin."""
    return PinholeCamera(K)


@pytest.fixture
def distorted_pinhole(K: torch.Tensor) -> PinholeCamera:
    """Pinhole with mild barrel and tangential distortion."""
    return PinholeCamera(K, distortion=[-0.08, 0.01, 0.0, 0.0, 5e-4, -3e-4])


@pytest.fixture
def fisheye() -> FisheyeCamera:
    K = torch.tensor(
        [[300.0, 0.0, 320.0], [0.0, 300.0, 240.0], [0.0, 0.0, 1.0]],
        dtype=torch.float64,
    )
    return FisheyeCamera(K, distortion=[0.02, -0.005, 0.001, 0.0])
