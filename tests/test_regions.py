import numpy as np
import pytest

from image_processor.errors import InvalidParameter
from image_processor.image_engine.raster import CombineAxis, Raster, Rect, SquareRegion
from image_processor.image_engine.regions import combine, selection_mask


def test_top_bottom_mask_splits_at_half_height():
    mask = selection_mask(3, 5, CombineAxis.TOP_BOTTOM)
    assert mask.shape == (5, 3)
    assert mask[:2].all()
    assert not mask[2:].any()


def test_left_right_mask_splits_at_half_width():
    mask = selection_mask(5, 2, CombineAxis.LEFT_RIGHT)
    assert mask[:, :2].all()
    assert not mask[:, 2:].any()


@pytest.mark.parametrize(
    "axis,inverse",
    [(CombineAxis.TOP_BOTTOM, CombineAxis.BOTTOM_TOP), (CombineAxis.LEFT_RIGHT, CombineAxis.RIGHT_LEFT)],
)
def test_inverse_splits_are_complements(axis, inverse):
    a = selection_mask(7, 9, axis)
    b = selection_mask(7, 9, inverse)
    assert (a ^ b).all()


def test_diagonal_tl_br_mask_on_square():
    mask = selection_mask(4, 4, CombineAxis.DIAGONAL_TL_BR)
    expected = np.triu(np.ones((4, 4), dtype=bool), k=1)
    np.testing.assert_array_equal(mask, expected)
    # pixels on the diagonal belong to base
    assert not mask.diagonal().any()


def test_diagonal_tr_bl_mask_on_square():
    mask = selection_mask(4, 4, CombineAxis.DIAGONAL_TR_BL)
    ys, xs = np.indices((4, 4))
    np.testing.assert_array_equal(mask, xs + ys < 3)
    assert mask[0, 0]
    assert not mask[0, 3]
    assert not mask[3, 3]


@pytest.mark.parametrize("size", [(4, 4), (10, 5), (5, 10), (7, 3)])
def test_diagonal_masks_mirror_each_other(size):
    tl = selection_mask(*size, CombineAxis.DIAGONAL_TL_BR)
    tr = selection_mask(*size, CombineAxis.DIAGONAL_TR_BL)
    np.testing.assert_array_equal(tl[:, ::-1], tr)
    assert tl.sum() == tr.sum()


def test_diagonal_masks_on_wide_raster():
    mask = selection_mask(10, 5, CombineAxis.DIAGONAL_TL_BR)
    # y * 10 < x * 5  <=>  2y < x
    assert mask[0, 1]
    assert not mask[1, 2]
    assert mask[1, 3]
    assert not mask[4, 8]
    assert selection_mask(10, 5, CombineAxis.DIAGONAL_TR_BL)[4, 0]


def test_combine_top_bottom_same_size(rng_raster):
    base = rng_raster(6, 8, seed=1)
    overlay = rng_raster(6, 8, seed=2)
    out = combine(base, overlay, CombineAxis.TOP_BOTTOM)
    np.testing.assert_array_equal(out.pixels[0], overlay.pixels[0])
    np.testing.assert_array_equal(out.pixels[-1], base.pixels[-1])
    np.testing.assert_array_equal(out.pixels[:4], overlay.pixels[:4])
    np.testing.assert_array_equal(out.pixels[4:], base.pixels[4:])


@pytest.mark.parametrize("axis", list(CombineAxis))
def test_combine_selects_pixels_by_mask(rng_raster, axis):
    base = rng_raster(9, 6, seed=3)
    overlay = rng_raster(9, 6, seed=4)
    out = combine(base, overlay, axis)
    mask = selection_mask(9, 6, axis)
    np.testing.assert_array_equal(out.pixels[mask], overlay.pixels[mask])
    np.testing.assert_array_equal(out.pixels[~mask], base.pixels[~mask])


def test_combine_resizes_overlay_to_base(vips, make_raster):
    base = make_raster(20, 10, (255, 0, 0, 255))
    overlay = make_raster(7, 9, (0, 0, 255, 255))
    out = combine(base, overlay, CombineAxis.LEFT_RIGHT)
    assert out.size == (20, 10)
    assert np.abs(out.pixels[:, :10].astype(int) - [0, 0, 255, 255]).max() <= 1
    assert (out.pixels[:, 10:] == (255, 0, 0, 255)).all()


def test_square_region_end_to_end():
    base = Raster.filled(100, 50, (255, 0, 0, 255))
    arr = np.zeros((50, 100, 4), dtype=np.uint8)
    arr[5:45, 30:70] = (0, 0, 255, 255)
    overlay = Raster(arr)

    out = combine(base, overlay, SquareRegion(Rect(30, 5, 40)))
    inside = np.zeros((50, 100), dtype=bool)
    inside[5:45, 30:70] = True
    assert (out.pixels[inside] == (0, 0, 255, 255)).all()
    assert (out.pixels[~inside] == (255, 0, 0, 255)).all()


def test_square_region_hard_cut_copies_transparency():
    base = Raster.filled(10, 10, (255, 0, 0, 255))
    overlay = Raster.filled(4, 4, (0, 0, 255, 0))
    out = combine(base, overlay, SquareRegion(Rect(2, 2, 4)))
    # fully transparent overlays are not trimmed and replace the square as-is
    assert (out.pixels[2:6, 2:6] == (0, 0, 255, 0)).all()
    assert (out.pixels[0] == (255, 0, 0, 255)).all()


def test_square_region_blend_composites_inside_square():
    base = Raster.filled(10, 10, (255, 0, 0, 255))
    overlay = Raster.filled(4, 4, (0, 0, 255, 255))
    out = combine(base, overlay, SquareRegion(Rect(2, 2, 4), blend=True, opacity=0.25))
    assert tuple(out.pixels[3, 3]) == (191, 0, 64, 255)
    assert tuple(out.pixels[0, 0]) == (255, 0, 0, 255)

    unchanged = combine(base, overlay, SquareRegion(Rect(2, 2, 4), blend=True, opacity=0.0))
    assert unchanged == base


def test_square_region_out_of_bounds(rng_raster):
    base = rng_raster(10, 10)
    with pytest.raises(InvalidParameter):
        combine(base, rng_raster(3, 3), SquareRegion(Rect(8, 0, 3)))


def test_combine_does_not_mutate_inputs(rng_raster):
    base = rng_raster(5, 5, seed=9)
    patch = rng_raster(3, 3, seed=10, opaque=True)
    overlay = rng_raster(5, 5, seed=11)
    snapshot = base.copy()
    combine(base, patch, SquareRegion(Rect(1, 1, 3)))
    combine(base, overlay, CombineAxis.DIAGONAL_TR_BL)
    assert base == snapshot
