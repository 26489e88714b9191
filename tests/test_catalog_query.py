import pytest

# Import the query tool being tested
import catalog_query as cq

from face_transfer.core import FaceTransferApp


def test_connect_db_missing(tmp_path):
    with pytest.raises(SystemExit):
        cq.connect_db(tmp_path / "none.lrcat")


@pytest.fixture
def transferred(populated):
    catalog_path, library_root, _, _, _ = populated
    FaceTransferApp(catalog_path, library_root).transfer()
    conn = cq.connect_db(catalog_path)
    try:
        yield conn
    finally:
        conn.close()


def test_list_people(transferred, capsys):
    cq.list_people(transferred)
    out = capsys.readouterr().out
    assert "People:" in out
    assert "|     1 | Alice" in out


def test_show_image(transferred, capsys):
    cq.show_image(transferred, 1)
    out = capsys.readouterr().out
    assert "2014/IMG_0001.jpg" in out
    assert "Alice" in out
    assert "[Unnamed]" in out
    assert "Beach" in out
    assert "Alice (person)" in out


def test_show_unknown_image(transferred, capsys):
    cq.show_image(transferred, 999)
    assert "No image with id=999" in capsys.readouterr().out


def test_list_stacks(transferred, capsys):
    cq.list_stacks(transferred)
    out = capsys.readouterr().out
    assert "1. IMG_0001.jpg (image 1)" in out
    assert "2. IMG_0002.jpg (image 2)" in out


def test_main_people(transferred, populated, capsys):
    catalog_path = populated[0]
    cq.main(["--catalog", str(catalog_path), "--people"])
    assert "Alice" in capsys.readouterr().out


def test_empty_catalog(stores, capsys):
    conn = cq.connect_db(stores[0])
    try:
        cq.list_people(conn)
        cq.list_stacks(conn)
    finally:
        conn.close()
    out = capsys.readouterr().out
    assert "No person keywords found." in out
    assert "No stacks found." in out
