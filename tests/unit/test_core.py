"""Tests for the batch helpers."""

import pytest
import torch

from camwarp import PinholeCamera, ResampleConfig, reproject_images, undistort_images


@pytest.fixture
def small_camera() -> PinholeCamera:
    K = torch.tensor(
        [[60.0, 0.0, 16.0], [0.0, 60.0, 12.0], [0.0, 0.0, 1.0]], dtype=torch.float64
    )
    return PinholeCamera(K)


@pytest.fixture
def images() -> torch.Tensor:
    return torch.rand(2, 3, 24, 32, dtype=torch.float64)


class TestReprojectImages:
    def test_same_cameras(self, images, small_camera):
        cams = [small_camera, small_camera]
        out, masks = reproject_images(images, cams, cams)
        assert out.shape == images.shape
        assert masks.shape == (2, 24, 32)
        assert masks.dtype == torch.bool
        assert masks.all()
        assert torch.allclose(out, images, atol=1e-6)

    def test_config_and_output_size(self, images, small_camera):
        cams = [small_camera, small_camera]
        config = ResampleConfig(edge="clamp", interp="nearest", tile_size=8)
        out, masks = reproject_images(images, cams, cams, config, dst_size=(10, 5))
        assert out.shape == (2, 3, 5, 10)
        assert torch.allclose(out, images[..., :5, :10])
        assert masks.shape == (2, 5, 10)

    def test_camera_count_mismatch(self, images, small_camera):
        with pytest.raises(ValueError, match="got 2 images"):
            reproject_images(images, [small_camera], [small_camera, small_camera])

    def test_empty_batch(self, small_camera):
        with pytest.raises(ValueError, match="empty"):
            reproject_images(torch.zeros(0, 1, 4, 4), [], [])


class TestUndistortImages:
    def test_shapes_and_masks(self, images):
        K = torch.tensor(
            [[30.0, 0.0, 16.0], [0.0, 30.0, 12.0], [0.0, 0.0, 1.0]], dtype=torch.float64
        )
        barrel = PinholeCamera(K, distortion=[-0.2, 0.0, 0.0, 0.0, 0.0, 0.0])
        pincushion = PinholeCamera(K, distortion=[0.2, 0.0, 0.0, 0.0, 0.0, 0.0])
        out, masks = undistort_images(images, [barrel, pincushion])
        assert out.shape == images.shape
        # barrel distortion pulls every undistorted pixel inward
        assert masks[0].all()
        # pincushion pushes the corners out of the source image
        assert not masks[1, 0, 0]
        assert torch.all(out[1][:, ~masks[1]] == 0)

    def test_camera_count_mismatch(self, images, small_camera):
        with pytest.raises(ValueError, match="got 2 images but 1 cameras"):
            undistort_images(images, [small_camera])
