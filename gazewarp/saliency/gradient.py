from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class GradientImage:
    """
    Square map of vertical contrast, indexed grid[y, x].

    Zero means background. The last row is always zero.
    """
    grid: np.ndarray

    @property
    def side(self) -> int:
        return int(self.grid.shape[0])

    def at(self, x: int, y: int) -> int:
        # outside the grid counts as background
        if 0 <= x < self.side and 0 <= y < self.side:
            return int(self.grid[y, x])
        return 0


def luma(image) -> np.ndarray:
    """8-bit luma of a PIL image or a uint8 array (HxW or HxWxC), as int16."""
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("L"), dtype=np.int16)
    arr = np.asarray(image)
    if arr.ndim == 2:
        return arr.astype(np.int16)
    if arr.ndim == 3:
        return np.asarray(Image.fromarray(arr.astype(np.uint8)).convert("L"), dtype=np.int16)
    raise ValueError(f"expected a 2-D or 3-D image, got shape {arr.shape}")


def derive(image) -> GradientImage:
    """
    Vertical one-sided derivative: cell = clamp(luma[y] - luma[y+1], 0, 255).

    The output is height x height. Width is ignored on purpose: wider
    captures are cropped on the right, narrower ones are padded with
    background columns.
    """
    lum = luma(image)
    side = lum.shape[0]

    square = np.zeros((side, side), dtype=np.int16)
    w = min(side, lum.shape[1])
    square[:, :w] = lum[:, :w]

    grid = np.zeros((side, side), dtype=np.uint8)
    if side > 1:
        diff = square[:-1, :] - square[1:, :]
        grid[:-1, :] = np.clip(diff, 0, 255).astype(np.uint8)
    return GradientImage(grid=grid)
