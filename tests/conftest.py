import pytest
import sqlite3
from face_transfer import config
from face_transfer.database.schema import init_schema, CATALOG_SCHEMA, LIBRARY_SCHEMA, FACES_SCHEMA
from face_transfer.database.ops import DBOperations

FIRST_FREE_ID = 1000
ROOT_TAG_ID = 1

# Aperture corners of a face in the lower left part of the picture
DEFAULT_CORNERS = {
    "bl": (0.2, 0.6), "br": (0.4, 0.6),
    "tl": (0.2, 0.8), "tr": (0.4, 0.8),
}


def _memory_db(schema):
    c = sqlite3.connect(":memory:", isolation_level=None)
    init_schema(c, schema)
    return c


class Seeder:
    """Writes the rows Lightroom and Aperture would have, with minimal columns."""

    def variables(self, catalog: DBOperations, counter=FIRST_FREE_ID,
                  root=str(ROOT_TAG_ID), increment=1.0):
        catalog.insert_variable(1, "var-counter", config.ID_COUNTER_VAR, counter)
        catalog.insert_variable(2, "var-root", config.ROOT_KEYWORD_VAR, root)
        if increment is not None:
            catalog.insert_variable(3, "var-popularity", config.POPULARITY_INCREMENT_VAR, increment)

    def image(self, catalog: DBOperations, image_id, file_name, mod_time,
              orientation="AB", copy_name=None, folder="2014/", xmp=None):
        catalog.execute("""
            INSERT OR IGNORE INTO AgLibraryRootFolder (id_local, id_global, absolutePath, name)
            VALUES (10, 'root-folder', '/Pictures/', 'Pictures')
        """)
        catalog.execute(
            "INSERT INTO AgLibraryFolder (id_local, id_global, pathFromRoot, rootFolder) VALUES (?, ?, ?, 10)",
            (image_id + 200, f"folder-{image_id}", folder),
        )
        catalog.execute("""
            INSERT INTO AgLibraryFile (id_local, id_global, baseName, extension,
                externalModTime, folder, originalFilename)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (image_id + 100, f"file-{image_id}", file_name.rsplit(".", 1)[0],
              file_name.rsplit(".", 1)[-1], mod_time, image_id + 200, file_name))
        catalog.execute("""
            INSERT INTO Adobe_images (id_local, id_global, copyName, orientation, rootFile)
            VALUES (?, ?, ?, ?, ?)
        """, (image_id, f"image-{image_id}", copy_name, orientation, image_id + 100))
        catalog.execute(
            "INSERT INTO AgHarvestedExifMetadata (id_local, image, hasGPS) VALUES (?, ?, 0)",
            (image_id + 300, image_id),
        )
        if xmp is not None:
            catalog.execute(
                "INSERT INTO Adobe_AdditionalMetadata (id_local, id_global, image, xmp) VALUES (?, ?, ?, ?)",
                (image_id + 400, f"meta-{image_id}", image_id, xmp),
            )

    def master(self, library: DBOperations, uuid, file_name, mod_time,
               image_path=None, missing=0):
        library.execute("""
            INSERT INTO RKMaster (uuid, fileName, imagePath, fileModificationDate, isMissing)
            VALUES (?, ?, ?, ?, ?)
        """, (uuid, file_name, image_path or f"2014/{uuid}/{file_name}", mod_time, missing))

    def version(self, library: DBOperations, master_uuid, number=1, stack=None,
                lat=None, lon=None, keywords=()) -> int:
        cur = library.execute("""
            INSERT INTO RKVersion (uuid, masterUuid, versionNumber, stackUuid, exifLatitude, exifLongitude)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (f"{master_uuid}-v{number}", master_uuid, number, stack, lat, lon))
        version_id = cur.lastrowid
        for name in keywords:
            keyword_id = library.fetch_value("SELECT modelId FROM RKKeyword WHERE name = ?", (name,))
            if keyword_id is None:
                keyword_id = library.execute(
                    "INSERT INTO RKKeyword (uuid, name) VALUES (?, ?)", (f"kw-{name}", name)
                ).lastrowid
            library.execute(
                "INSERT INTO RKKeywordForVersion (versionId, keywordId) VALUES (?, ?)",
                (version_id, keyword_id),
            )
        return version_id

    def face(self, faces: DBOperations, master_uuid, name=None, rejected=0, corners=None):
        c = corners or DEFAULT_CORNERS
        face_key = None
        if name is not None:
            face_key = faces.execute("INSERT INTO RKFaceName (name) VALUES (?)", (name,)).lastrowid
            faces.execute("UPDATE RKFaceName SET faceKey = modelId WHERE modelId = ?", (face_key,))
        faces.execute("""
            INSERT INTO RKDetectedFace (uuid, masterUuid, faceKey, rejected,
                topLeftX, topLeftY, topRightX, topRightY,
                bottomLeftX, bottomLeftY, bottomRightX, bottomRightY)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (f"face-{master_uuid}-{name}", master_uuid, face_key, rejected,
              *c["tl"], *c["tr"], *c["bl"], *c["br"]))


@pytest.fixture
def seed():
    return Seeder()


@pytest.fixture
def catalog(seed):
    """In-memory catalog with the id counter and keyword root variables set."""
    c = _memory_db(CATALOG_SCHEMA)
    ops = DBOperations(c)
    seed.variables(ops)
    try:
        yield ops
    finally:
        c.close()


@pytest.fixture
def library():
    c = _memory_db(LIBRARY_SCHEMA)
    try:
        yield DBOperations(c)
    finally:
        c.close()


@pytest.fixture
def faces():
    c = _memory_db(FACES_SCHEMA)
    try:
        yield DBOperations(c)
    finally:
        c.close()


@pytest.fixture
def stores(tmp_path, seed):
    """
    On-disk catalog and Aperture library bundle, laid out as the CLI expects.
    Yields (catalog_path, library_root, catalog_ops, library_ops, faces_ops).
    The connections are autocommit, so rows seeded through them are visible
    to the application, and they can be used to inspect the result.
    """
    catalog_path = tmp_path / "Test Catalog.lrcat"
    library_root = tmp_path / "Aperture Library.aplibrary"
    (library_root / config.LIBRARY_DB_SUBPATH).parent.mkdir(parents=True)

    conns = []
    ops = []
    for path, schema in (
        (catalog_path, CATALOG_SCHEMA),
        (library_root / config.LIBRARY_DB_SUBPATH, LIBRARY_SCHEMA),
        (library_root / config.FACES_DB_SUBPATH, FACES_SCHEMA),
    ):
        c = sqlite3.connect(path, isolation_level=None)
        init_schema(c, schema)
        conns.append(c)
        ops.append(DBOperations(c))
    seed.variables(ops[0])

    try:
        yield catalog_path, library_root, ops[0], ops[1], ops[2]
    finally:
        for c in conns:
            c.close()


PHOTO_XMP = """<x:xmpmeta xmlns:x="adobe:ns:meta/">
 <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
  <rdf:Description rdf:about="" xmlns:exif="http://ns.adobe.com/exif/1.0/" exif:GPSAltitude="120/1"/>
 </rdf:RDF>
</x:xmpmeta>
"""


@pytest.fixture
def populated(stores, seed):
    """
    Three photos:
      1. IMG_0001.jpg: Alice + an unnamed face, keywords, stack S1, position
      2. IMG_0002.jpg: no faces, stack S1, a missing duplicate master
      3. IMG_0003.jpg: not in the Aperture library
    plus leftovers from an earlier run that must disappear.
    """
    catalog_path, library_root, catalog, library, faces = stores
    t = 400000000

    seed.image(catalog, 1, "IMG_0001.jpg", t, orientation="AB", xmp=PHOTO_XMP)
    seed.image(catalog, 2, "IMG_0002.jpg", t + 1, orientation="BC")
    seed.image(catalog, 3, "IMG_0003.jpg", t + 2)

    seed.master(library, "M1", "IMG_0001.jpg", t)
    seed.version(library, "M1", stack="S1", lat=59.5, lon=10.25, keywords=["Beach", "Alice"])
    seed.face(faces, "M1", "Alice")
    seed.face(faces, "M1", "")
    seed.face(faces, "M1", "Ghost", rejected=1)

    seed.master(library, "M2-old", "IMG_0002.jpg", t + 1, image_path="old/IMG_0002.jpg", missing=1)
    seed.master(library, "M2", "IMG_0002.jpg", t + 1, image_path="new/IMG_0002.jpg")
    seed.version(library, "M2", stack="S1")

    catalog.execute("""
        INSERT INTO AgLibraryKeyword (id_local, id_global, genealogy, name, lc_name, parent)
        VALUES (900, 'old-keyword', '/11/3900', 'Old', 'old', 1)
    """)
    catalog.execute("INSERT INTO AgLibraryFolderStack (id_local, id_global, collapsed, text) VALUES (901, 'old-stack', 0, '')")

    return stores
