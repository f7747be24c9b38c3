"""Tests for ResampleConfig and load_config."""

import dataclasses

import pytest

from camwarp import EdgeExtension, Interpolation, ResampleConfig, load_config


class TestResampleConfig:
    def test_defaults(self):
        config = ResampleConfig()
        assert config.edge_extension is EdgeExtension.ZERO
        assert config.interpolation is Interpolation.BILINEAR
        assert config.tile_size is None

    def test_is_frozen(self):
        config = ResampleConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.edge = "clamp"  # type: ignore[misc]

    def test_accepts_enum_members(self):
        config = ResampleConfig(edge=EdgeExtension.PERIODIC, interp=Interpolation.BICUBIC)
        assert config.edge == "periodic"
        assert config.interp == "bicubic"

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            ResampleConfig(edge="wrap")
        with pytest.raises(ValueError):
            ResampleConfig(interp="cubic")
        with pytest.raises(ValueError, match="tile_size"):
            ResampleConfig(tile_size=0)

    def test_to_dict(self):
        assert ResampleConfig(tile_size=64).to_dict() == {
            "edge": "zero",
            "interp": "bilinear",
            "tile_size": 64,
        }


class TestLoadConfig:
    def test_no_file(self):
        assert load_config() == ResampleConfig()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "resample.yaml"
        path.write_text("edge: reflect\ntile_size: 128\n")
        config = load_config(path)
        assert config.edge_extension is EdgeExtension.REFLECT
        assert config.interpolation is Interpolation.BILINEAR
        assert config.tile_size == 128

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "resample.yaml"
        path.write_text("edge: reflect\ninterp: nearest\n")
        config = load_config(path, interp="bicubic")
        assert config.edge == "reflect"
        assert config.interp == "bicubic"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ResampleConfig()

    def test_unknown_keys(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("edge: zero\nsmoothing: 3\n")
        with pytest.raises(ValueError, match="unknown config keys: smoothing"):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- zero\n- bilinear\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_config(path)
