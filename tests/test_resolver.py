import logging
import unicodedata

import pytest
from face_transfer.exceptions import AmbiguousMatchError, NotFoundError
from face_transfer.source.resolver import ApertureResolver, version_bound
from face_transfer import config

T = 400000000


@pytest.fixture
def resolver(library, faces):
    return ApertureResolver(library, faces)


def test_exact_match(library, seed, resolver):
    seed.master(library, "M1", "IMG_0001.jpg", T)
    seed.master(library, "M2", "IMG_0002.jpg", T + 1)
    assert resolver.resolve_photo("IMG_0001.jpg", T) == "M1"


def test_missing_duplicate_warns_once(library, seed, resolver, caplog):
    seed.master(library, "M-missing", "IMG_0001.jpg", T, image_path="old/IMG_0001.jpg", missing=1)
    seed.master(library, "M-present", "IMG_0001.jpg", T, image_path="new/IMG_0001.jpg", missing=0)

    with caplog.at_level(logging.WARNING):
        assert resolver.resolve_photo("IMG_0001.jpg", T) == "M-present"

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "missing duplicate" in warnings[0].getMessage()


def test_present_duplicates_warn_and_pick_one(library, seed, resolver, caplog):
    seed.master(library, "M1", "IMG_0001.jpg", T, image_path="a/IMG_0001.jpg")
    seed.master(library, "M2", "IMG_0001.jpg", T, image_path="b/IMG_0001.jpg")

    with caplog.at_level(logging.WARNING):
        assert resolver.resolve_photo("IMG_0001.jpg", T) in ("M1", "M2")

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "More than one master" in warnings[0].getMessage()


def test_fallback_by_date(library, seed, resolver, caplog):
    seed.master(library, "M1", "renamed.jpg", T)

    with caplog.at_level(logging.INFO):
        assert resolver.resolve_photo("IMG_0001.jpg", T) == "M1"
    assert any("by date" in r.getMessage() for r in caplog.records)


def test_fallback_by_date_must_be_unique(library, seed, resolver):
    seed.master(library, "M1", "a.jpg", T)
    seed.master(library, "M2", "b.jpg", T)
    with pytest.raises(AmbiguousMatchError):
        resolver.resolve_photo("IMG_0001.jpg", T)


def test_no_master(library, seed, resolver):
    seed.master(library, "M1", "IMG_0001.jpg", T + 5)
    with pytest.raises(NotFoundError):
        resolver.resolve_photo("IMG_0001.jpg", T)


@pytest.mark.parametrize("copy_name,expected", [
    (None, config.LATEST_VERSION),
    ("", config.LATEST_VERSION),
    ("Copy 1", config.LATEST_VERSION),
    ("VERSION-1", 0),
    ("VERSION-3", 2),
    ("VERSION-0", 0),
    ("VERSION-", 0),
    ("VERSION-abc", 0),
    ("VERSION-4 (edited)", 3),
    ("VERSION-99999999999999999999", config.LATEST_VERSION),
    ("VERSION--99999999999999999999", -config.LATEST_VERSION),
])
def test_version_bound(copy_name, expected):
    assert version_bound(copy_name) == expected


def test_resolve_version(library, seed, resolver):
    seed.master(library, "M1", "IMG_0001.jpg", T)
    v1 = seed.version(library, "M1", number=1)
    v2 = seed.version(library, "M1", number=2)
    v3 = seed.version(library, "M1", number=3)

    assert resolver.resolve_version("M1") == v3
    assert resolver.resolve_version("M1", "VERSION-3") == v2
    assert resolver.resolve_version("M1", "VERSION-2") == v1
    with pytest.raises(NotFoundError):
        resolver.resolve_version("M1", "VERSION-1")
    with pytest.raises(NotFoundError):
        resolver.resolve_version("unknown")


def test_list_faces(faces, seed, resolver):
    decomposed = unicodedata.normalize("NFD", "Ren\u00e9")
    seed.face(faces, "M1", "Alice")
    seed.face(faces, "M1", None)
    seed.face(faces, "M1", "")
    seed.face(faces, "M1", decomposed)
    seed.face(faces, "M1", "Rejected", rejected=1)
    seed.face(faces, "M2", "Bob")

    result = resolver.list_faces("M1")

    assert [f.name for f in result] == ["Alice", None, None, "Ren\u00e9"]
    quad = result[0].quad
    assert (quad.bl.x, quad.bl.y, quad.tr.x, quad.tr.y) == pytest.approx((0.2, 0.6, 0.4, 0.8))


def test_list_keywords(library, seed, resolver):
    seed.master(library, "M1", "IMG_0001.jpg", T)
    v = seed.version(library, "M1", keywords=["Beach", "", "Summer"])
    other = seed.version(library, "M1", number=2, keywords=["Winter"])

    assert resolver.list_keywords(v) == ["Beach", "Summer"]
    assert resolver.list_keywords(other) == ["Winter"]


def test_stack_and_gps(library, seed, resolver):
    seed.master(library, "M1", "IMG_0001.jpg", T)
    stacked = seed.version(library, "M1", number=1, stack="S1", lat=59.9, lon=10.75)
    plain = seed.version(library, "M1", number=2, stack="", lat=59.9)

    assert resolver.resolve_stack_id(stacked) == "S1"
    assert resolver.resolve_stack_id(plain) is None
    assert resolver.resolve_gps(stacked) == pytest.approx((59.9, 10.75))
    assert resolver.resolve_gps(plain) is None
