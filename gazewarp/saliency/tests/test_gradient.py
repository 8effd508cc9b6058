import numpy as np
from PIL import Image

from gazewarp.saliency.gradient import GradientImage, derive


def test_light_above_dark_is_an_edge():
    lum = np.full((6, 6), 200, dtype=np.uint8)
    lum[3:, :] = 50
    g = derive(lum)
    assert g.side == 6
    assert g.at(0, 2) == 150
    # everything else flat
    assert int(g.grid.sum()) == 150 * 6


def test_dark_above_light_clamps_to_background():
    lum = np.full((6, 6), 50, dtype=np.uint8)
    lum[3:, :] = 200
    assert int(derive(lum).grid.sum()) == 0


def test_last_row_is_zero():
    # each row 10 brighter than the one below it
    lum = np.array([[30] * 4, [20] * 4, [10] * 4, [0] * 4], dtype=np.uint8)
    g = derive(lum)
    assert (g.grid[-1, :] == 0).all()
    assert (g.grid[:-1, :] == 10).all()


def test_side_follows_height_wide_image_is_cropped():
    img = Image.new("L", (8, 4), 255)
    img.putpixel((6, 2), 0)   # outside the 4x4 square
    g = derive(img)
    assert g.grid.shape == (4, 4)
    assert int(g.grid.sum()) == 0


def test_narrow_image_is_padded_with_background():
    img = Image.new("L", (2, 4), 255)
    img.putpixel((1, 2), 0)
    g = derive(img)
    assert g.grid.shape == (4, 4)
    assert g.at(1, 1) == 255
    assert (g.grid[:, 2:] == 0).all()


def test_rgb_input_uses_luma():
    img = Image.new("RGB", (4, 4), (255, 0, 0))
    for x in range(4):
        img.putpixel((x, 3), (0, 0, 0))
    g = derive(img)
    assert g.at(0, 2) > 0
    assert g.at(0, 1) == 0


def test_outside_cells_are_background():
    g = GradientImage(grid=np.full((3, 3), 9, dtype=np.uint8))
    assert g.at(-1, 0) == 0
    assert g.at(0, 3) == 0
    assert g.at(2, 2) == 9
