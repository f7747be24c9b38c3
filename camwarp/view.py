"""Lazy image resampling through a coordinate mapper.

A ``TransformView`` holds an image, a mapper exposing ``reverse`` and the
edge extension / interpolation policies. Output pixels are only computed
when the view is indexed or rasterized; every output pixel (u, v) is pulled
from the source coordinate ``mapper.reverse((u, v))`` with
``torch.nn.functional.grid_sample``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
import torch
import torch.nn.functional as F
from torch import Tensor

logger = logging.getLogger(__name__)


class EdgeExtension(str, Enum):
    """Value of source pixels outside the image."""

    ZERO = "zero"
    CLAMP = "clamp"
    REFLECT = "reflect"
    PERIODIC = "periodic"


class Interpolation(str, Enum):
    """Reconstruction of source values at non-integer coordinates."""

    NEAREST = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"


_PADDING_MODES = {
    EdgeExtension.ZERO: "zeros",
    EdgeExtension.CLAMP: "border",
    EdgeExtension.REFLECT: "reflection",
    # periodic coords are wrapped and the image circularly padded first
    EdgeExtension.PERIODIC: "border",
}

# enough context for the bicubic kernel
_PERIODIC_PAD = 2

# pixels; round-off from composed projections lands just below 0 on the border
_INSIDE_TOL = 1e-6


@dataclass(frozen=True)
class BBox:
    """Half-open integer pixel box [min_x, max_x) x [min_y, max_y)."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y


def _resolve_index(index, size: int) -> Tuple[int, int, bool]:
    if isinstance(index, slice):
        start, stop, step = index.indices(size)
        if step != 1:
            raise ValueError(f"only unit-step slices are supported, got step {step}")
        return start, max(start, stop), False
    index = int(index)
    if index < 0:
        index += size
    if not 0 <= index < size:
        raise IndexError(f"index {index} out of range for size {size}")
    return index, index + 1, True


class TransformView:
    """Lazily resampled view of ``image`` through ``mapper``

    Args:
        image: [H, W] or [C, H, W] tensor or array
        mapper: object exposing reverse(pixels [N, 2]) -> [N, 2]
        edge: EdgeExtension policy (or its string value)
        interp: Interpolation policy (or its string value)
        cols, rows: output extent, the source extent by default
        origin: output pixel (0, 0) is located at ``origin`` in the mapper's frame
    """

    def __init__(
        self,
        image,
        mapper,
        edge=EdgeExtension.ZERO,
        interp=Interpolation.BILINEAR,
        cols: Optional[int] = None,
        rows: Optional[int] = None,
        origin: Tuple[float, float] = (0.0, 0.0),
    ):
        image = torch.as_tensor(image)
        if image.ndim not in (2, 3):
            raise ValueError(f"image must be [H, W] or [C, H, W], got {tuple(image.shape)}")
        self._squeeze = image.ndim == 2
        if self._squeeze:
            image = image.unsqueeze(0)
        if not torch.is_floating_point(image):
            image = image.to(torch.float32)
        self._image = image

        self.mapper = mapper
        self.edge = EdgeExtension(edge)
        self.interp = Interpolation(interp)
        self.src_rows, self.src_cols = image.shape[-2:]
        self.cols = self.src_cols if cols is None else int(cols)
        self.rows = self.src_rows if rows is None else int(rows)
        if self.cols <= 0 or self.rows <= 0:
            raise ValueError(f"output extent must be positive, got {self.cols}x{self.rows}")
        self.origin = (float(origin[0]), float(origin[1]))

    @property
    def channels(self) -> int:
        return self._image.shape[0]

    @property
    def shape(self) -> Tuple[int, ...]:
        if self._squeeze:
            return (self.rows, self.cols)
        return (self.channels, self.rows, self.cols)

    @property
    def dtype(self) -> torch.dtype:
        return self._image.dtype

    def __getitem__(self, key) -> Tensor:
        if not isinstance(key, tuple):
            key = (key,)
        if len(key) > 2:
            raise IndexError("a view is indexed by at most (rows, cols)")
        row_key, col_key = (key + (slice(None),))[:2]
        r0, r1, drop_row = _resolve_index(row_key, self.rows)
        c0, c1, drop_col = _resolve_index(col_key, self.cols)

        out = self._render(c0, c1, r0, r1)
        if self._squeeze:
            out = out[0]
        if drop_col:
            out = out.select(-1, 0)
        if drop_row:
            out = out.select(-1 if drop_col else -2, 0)
        return out

    def rasterize(self, tile_size: Optional[int] = None) -> Tensor:
        """Compute every output pixel, optionally ``tile_size`` square tiles at a time"""
        if tile_size is None:
            out = self._render(0, self.cols, 0, self.rows)
        else:
            if tile_size <= 0:
                raise ValueError(f"tile_size must be positive, got {tile_size}")
            out = torch.empty((self.channels, self.rows, self.cols), dtype=self.dtype)
            for r0 in range(0, self.rows, tile_size):
                r1 = min(r0 + tile_size, self.rows)
                for c0 in range(0, self.cols, tile_size):
                    c1 = min(c0 + tile_size, self.cols)
                    out[:, r0:r1, c0:c1] = self._render(c0, c1, r0, r1)
        return out[0] if self._squeeze else out

    def coverage(self) -> Tensor:
        """Mask [rows, cols] of output pixels whose source coord is inside the image"""
        return self._inside(self._source_coords(0, self.cols, 0, self.rows))

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        array = self.rasterize().numpy()
        return array if dtype is None else array.astype(dtype)

    def __repr__(self) -> str:
        return (
            f"TransformView(shape={self.shape}, edge={self.edge.value}, "
            f"interp={self.interp.value}, mapper={self.mapper!r})"
        )

    def _source_coords(self, c0: int, c1: int, r0: int, r1: int) -> Tensor:
        xs = torch.arange(c0, c1, dtype=torch.float64) + self.origin[0]
        ys = torch.arange(r0, r1, dtype=torch.float64) + self.origin[1]
        grid_x, grid_y = torch.meshgrid(xs, ys, indexing="xy")
        pixels = torch.stack([grid_x, grid_y], dim=-1).reshape(-1, 2)
        src = torch.as_tensor(self.mapper.reverse(pixels))
        return src.reshape(r1 - r0, c1 - c0, 2)

    def _inside(self, coords: Tensor) -> Tensor:
        x = coords[..., 0]
        y = coords[..., 1]
        return (
            (x >= -_INSIDE_TOL)
            & (x < self.src_cols)
            & (y >= -_INSIDE_TOL)
            & (y < self.src_rows)
        )

    def _render(self, c0: int, c1: int, r0: int, r1: int) -> Tensor:
        if c1 <= c0 or r1 <= r0:
            return torch.zeros((self.channels, r1 - r0, c1 - c0), dtype=self.dtype)
        coords = self._source_coords(c0, c1, r0, r1).to(self.dtype)
        return self._sample(coords)

    def _sample(self, coords: Tensor) -> Tensor:
        """
        Args:
            coords: source pixel coords [h, w, 2]
        Return:
            sampled values [C, h, w]
        """
        finite = torch.isfinite(coords).all(dim=-1)
        valid = finite
        if self.edge is EdgeExtension.ZERO:
            valid = valid & self._inside(coords)
        coords = torch.where(finite.unsqueeze(-1), coords, torch.zeros_like(coords))

        image = self._image.unsqueeze(0)
        height, width = image.shape[-2:]
        if self.edge is EdgeExtension.PERIODIC:
            pad_x = min(_PERIODIC_PAD, width)
            pad_y = min(_PERIODIC_PAD, height)
            size = torch.tensor([width, height], dtype=coords.dtype)
            offset = torch.tensor([pad_x, pad_y], dtype=coords.dtype)
            coords = torch.remainder(coords, size) + offset
            image = F.pad(image, (pad_x, pad_x, pad_y, pad_y), mode="circular")
            height, width = image.shape[-2:]

        scale = torch.tensor([max(width - 1, 1), max(height - 1, 1)], dtype=coords.dtype)
        grid = 2.0 * coords / scale - 1.0
        out = F.grid_sample(
            image,
            grid.unsqueeze(0),
            mode=self.interp.value,
            padding_mode=_PADDING_MODES[self.edge],
            align_corners=True,
        )[0]
        return torch.where(valid, out, torch.zeros_like(out))


def transform(
    image,
    mapper,
    edge=EdgeExtension.ZERO,
    interp=Interpolation.BILINEAR,
    cols: Optional[int] = None,
    rows: Optional[int] = None,
    origin: Tuple[float, float] = (0.0, 0.0),
) -> TransformView:
    """Resample ``image`` through ``mapper`` without computing any pixel yet"""
    view = TransformView(image, mapper, edge, interp, cols=cols, rows=rows, origin=origin)
    logger.debug("built %r", view)
    return view


def transformed_bbox(mapper, cols: int, rows: int) -> BBox:
    """Bounding box of a cols x rows image border pushed through ``mapper.forward``

    Border pixels that map to non-finite coords are ignored.
    """
    xs = torch.arange(cols, dtype=torch.float64)
    ys = torch.arange(rows, dtype=torch.float64)
    border = torch.cat(
        [
            torch.stack([xs, torch.zeros_like(xs)], dim=-1),
            torch.stack([xs, torch.full_like(xs, rows - 1)], dim=-1),
            torch.stack([torch.zeros_like(ys), ys], dim=-1),
            torch.stack([torch.full_like(ys, cols - 1), ys], dim=-1),
        ]
    )
    mapped = torch.as_tensor(mapper.forward(border))
    mapped = mapped[torch.isfinite(mapped).all(dim=-1)]
    if mapped.shape[0] == 0:
        raise ValueError("no border pixel maps to a finite location")
    lo = torch.floor(mapped.min(dim=0).values)
    hi = torch.floor(mapped.max(dim=0).values) + 1
    return BBox(int(lo[0]), int(lo[1]), int(hi[0]), int(hi[1]))
