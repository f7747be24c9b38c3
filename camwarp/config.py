"""Frozen resampling config.

Loading precedence: defaults -> YAML file -> keyword overrides -> freeze.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .view import EdgeExtension, Interpolation


@dataclass(frozen=True)
class ResampleConfig:
    """Policies used when rasterizing camera transforms.

    Attributes:
        edge: Edge extension policy name ("zero", "clamp", "reflect", "periodic").
        interp: Interpolation policy name ("nearest", "bilinear", "bicubic").
        tile_size: Square tile size for rasterization, None renders in one pass.
    """

    edge: str = EdgeExtension.ZERO.value
    interp: str = Interpolation.BILINEAR.value
    tile_size: int | None = None

    def __post_init__(self) -> None:
        # Normalise enum members to their string values.
        object.__setattr__(self, "edge", EdgeExtension(self.edge).value)
        object.__setattr__(self, "interp", Interpolation(self.interp).value)
        if self.tile_size is not None and int(self.tile_size) <= 0:
            raise ValueError(f"tile_size must be positive, got {self.tile_size}")

    @property
    def edge_extension(self) -> EdgeExtension:
        return EdgeExtension(self.edge)

    @property
    def interpolation(self) -> Interpolation:
        return Interpolation(self.interp)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def load_config(path: str | Path | None = None, **overrides: Any) -> ResampleConfig:
    """Build a ResampleConfig from defaults, an optional YAML file and overrides.

    Args:
        path: YAML file with any of the ResampleConfig fields at top level.
        **overrides: Field values applied last.

    Returns:
        Frozen ResampleConfig.

    Raises:
        ValueError: On unknown keys or invalid values.
    """
    values: dict[str, Any] = {}
    if path is not None:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a mapping, got {type(loaded).__name__}")
        values.update(loaded)
    values.update(overrides)

    known = {field.name for field in dataclasses.fields(ResampleConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    return ResampleConfig(**values)
