"""
Conversion of face regions from Aperture's coordinates to Lightroom's.

Both applications store a face as four corners in the unit square, but
disagree on the axes, and Lightroom's axes follow the image orientation.
There is no general formula; each orientation has its own fixed rule.
"""
from enum import Enum
from typing import Union

from ..models import Point, Quad


class Orientation(str, Enum):
    """Lightroom's Adobe_images.orientation codes."""
    NORMAL = "AB"
    ROTATED_CW = "BC"
    UPSIDE_DOWN = "CD"
    ROTATED_CCW = "DA"


def _flip_y(p: Point) -> Point:
    return Point(p.x, 1 - p.y)


def _swap(p: Point) -> Point:
    return Point(p.y, p.x)


def _flip_x(p: Point) -> Point:
    return Point(1 - p.x, p.y)


def _swap_flip(p: Point) -> Point:
    return Point(1 - p.y, 1 - p.x)


_RULES = {
    Orientation.NORMAL: _flip_y,
    Orientation.ROTATED_CW: _swap,
    Orientation.UPSIDE_DOWN: _flip_x,
    Orientation.ROTATED_CCW: _swap_flip,
}


def transform(face: Quad, orientation: Union[Orientation, str, None]) -> Quad:
    """
    Maps an Aperture face region into Lightroom's coordinates.
    Unknown orientations leave the region unchanged.
    """
    try:
        rule = _RULES[Orientation(orientation)]
    except ValueError:
        return face
    return face.map(rule)
