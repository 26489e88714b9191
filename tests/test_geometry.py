import pytest
from face_transfer.catalog.geometry import Orientation, transform
from face_transfer.models import Point, Quad

FACE = Quad(
    bl=Point(0.2, 0.6), br=Point(0.4, 0.6),
    tl=Point(0.2, 0.8), tr=Point(0.4, 0.8),
)


def _approx(q: Quad):
    return [pytest.approx(tuple(p)) for p in (q.bl, q.br, q.tl, q.tr)]


def test_normal_flips_vertical_axis():
    out = transform(FACE, Orientation.NORMAL)
    assert _approx(out) == [(0.2, 0.4), (0.4, 0.4), (0.2, 0.2), (0.4, 0.2)]


def test_rotated_cw_swaps_axes():
    out = transform(FACE, "BC")
    assert _approx(out) == [(0.6, 0.2), (0.6, 0.4), (0.8, 0.2), (0.8, 0.4)]


def test_upside_down_flips_horizontal_axis():
    out = transform(FACE, "CD")
    assert _approx(out) == [(0.8, 0.6), (0.6, 0.6), (0.8, 0.8), (0.6, 0.8)]


def test_rotated_ccw_swaps_and_flips():
    out = transform(FACE, "DA")
    assert _approx(out) == [(0.4, 0.8), (0.4, 0.6), (0.2, 0.8), (0.2, 0.6)]


@pytest.mark.parametrize("orientation", [None, "", "XY", "ab"])
def test_unknown_orientation_is_identity(orientation):
    assert transform(FACE, orientation) == FACE


@pytest.mark.parametrize("orientation", list(Orientation))
def test_each_rule_is_an_involution(orientation):
    twice = transform(transform(FACE, orientation), orientation)
    assert _approx(twice) == [tuple(p) for p in (FACE.bl, FACE.br, FACE.tl, FACE.tr)]


@pytest.mark.parametrize("orientation", list(Orientation))
def test_unit_square_maps_onto_itself(orientation):
    corners = Quad(bl=Point(0, 0), br=Point(1, 0), tl=Point(0, 1), tr=Point(1, 1))
    out = transform(corners, orientation)
    assert sorted(tuple(p) for p in (out.bl, out.br, out.tl, out.tr)) == [(0, 0), (0, 1), (1, 0), (1, 1)]
