"""Tests for linearize_camera."""

import pytest
import torch

from camwarp import FisheyeCamera, PinholeCamera, linearize_camera


class TestLinearizeCamera:
    def test_drops_distortion(self, distorted_pinhole: PinholeCamera):
        linear = linearize_camera(distorted_pinhole, 640, 480, 640, 480)
        assert isinstance(linear, PinholeCamera)
        assert linear.distortion is None
        assert torch.equal(linear.K, distorted_pinhole.K)

    def test_keeps_pose(self, K: torch.Tensor):
        R = torch.tensor([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        center = torch.tensor([1.0, -2.0, 0.5])
        camera = PinholeCamera(K, R=R, center=center, distortion=[0.1, 0, 0, 0, 0, 0])
        linear = linearize_camera(camera, 640, 480, 640, 480)
        assert torch.equal(linear.R, camera.R)
        assert torch.equal(linear.center, camera.center)

    def test_scales_intrinsics(self, pinhole: PinholeCamera):
        """Doubling the width doubles fx and cx; halving the height halves fy and cy."""
        linear = linearize_camera(pinhole, 640, 480, 1280, 240)
        expected = torch.tensor(
            [[1000.0, 0.0, 640.0], [0.0, 250.0, 120.0], [0.0, 0.0, 1.0]],
            dtype=torch.float64,
        )
        assert torch.allclose(linear.K, expected)

    def test_fisheye_becomes_pinhole(self, fisheye: FisheyeCamera):
        linear = linearize_camera(fisheye, 640, 480, 640, 480)
        assert isinstance(linear, PinholeCamera)
        assert torch.equal(linear.K, fisheye.K)
        assert torch.equal(linear.camera_center([0.0, 0.0]), fisheye.camera_center([0.0, 0.0]))

    def test_rejects_non_positive_extent(self, pinhole: PinholeCamera):
        with pytest.raises(ValueError, match="dst_rows must be positive"):
            linearize_camera(pinhole, 640, 480, 640, 0)

    def test_rejects_models_without_intrinsics(self):
        class Opaque:
            def pixel_to_vector(self, pixel):
                return pixel

        with pytest.raises(TypeError, match="cannot linearize Opaque"):
            linearize_camera(Opaque(), 640, 480, 640, 480)
