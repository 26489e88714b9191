from typing import List, Optional

from .. import config
from ..database.ops import DBOperations
from ..models import CatalogImage, KeywordRoots, Quad, SourceFace
from .geometry import transform
from .ids import IdAllocator
from .keywords import KeywordTree

# Everything Lightroom's own face detection may have left for one image.
# Keyword links go first because they are only reachable through the faces.
FACE_CLEANUP = [
    """DELETE FROM AgLibraryKeywordImage
       WHERE image = :image
       AND tag IN (SELECT tag FROM AgLibraryKeywordFace
                   WHERE face IN (SELECT id_local FROM AgLibraryFace WHERE image = :image))""",
    "DELETE FROM Adobe_libraryImageFaceProcessHistory WHERE image = :image",
    "DELETE FROM AgLibraryFaceCluster WHERE id_local IN (SELECT cluster FROM AgLibraryFace WHERE image = :image)",
    "DELETE FROM AgLibraryFaceData WHERE face IN (SELECT id_local FROM AgLibraryFace WHERE image = :image)",
    "DELETE FROM AgLibraryKeywordFace WHERE face IN (SELECT id_local FROM AgLibraryFace WHERE image = :image)",
    "DELETE FROM AgLibraryFace WHERE image = :image",
]


class FaceSynthesizer:
    """
    Writes Aperture's faces into the catalog the way Lightroom would have
    written them had the user marked and named the faces by hand.
    """
    def __init__(self, db_ops: DBOperations, allocator: IdAllocator,
                 keywords: KeywordTree, roots: KeywordRoots):
        self.db = db_ops
        self.ids = allocator
        self.keywords = keywords
        self.roots = roots

    def replace_faces(self, image: CatalogImage, faces: List[SourceFace]):
        """
        Replaces whatever faces Lightroom knows for `image` with `faces` and
        tells Lightroom not to run its own detection on it again.
        """
        self.remove_destination_faces(image.image_id)
        for face in faces:
            self.synthesize_face(image.image_id, image.orientation, face.quad, face.name)
        self.mark_face_process_done(image.image_id, image.orientation)

    def remove_destination_faces(self, image_id: int):
        self.db.run_cleanup(FACE_CLEANUP, {"image": image_id})

    def synthesize_face(self, image_id: int, orientation: str, quad: Quad,
                        person_name: Optional[str] = None) -> int:
        """Creates one face with all the rows that hang off it. Returns the face id."""
        keyword_id = None
        if person_name:
            keyword_id = self.keywords.find_or_create(
                person_name,
                self.roots.face_root_id,
                self.roots.face_root_genealogy,
                config.PERSON_KEYWORD_TYPE,
            )

        cluster_id = self._create_cluster()
        face_id = self._create_face(transform(quad, orientation), cluster_id, image_id, orientation)
        self._create_face_data(face_id)

        if keyword_id is not None:
            self._create_keyword_face(face_id, keyword_id)
            self.keywords.ensure_image_link(image_id, keyword_id)

        return face_id

    def _create_cluster(self) -> int:
        # Lightroom creates one per face; we mirror it without knowing why
        id_local = self.ids.allocate()
        self.db.execute(
            "INSERT INTO AgLibraryFaceCluster (id_local, keyFace) VALUES (?, NULL)",
            (id_local,),
        )
        return id_local

    def _create_face(self, quad: Quad, cluster_id: int, image_id: int, orientation: str) -> int:
        id_local = self.ids.allocate()
        self.db.execute("""
            INSERT INTO AgLibraryFace
                (id_local,
                 bl_x, bl_y, br_x, br_y, tl_x, tl_y, tr_x, tr_y,
                 cluster, compatibleVersion, ignored, image, imageOrientation,
                 orientation, origination, propertiesCache, regionType,
                 skipSuggestion, version)
            VALUES (?,
                    ?, ?, ?, ?, ?, ?, ?, ?,
                    ?, 3.0, NULL, ?, ?,
                    0, 1.0, NULL, 1.0,
                    NULL, 2.0)
        """, (
            id_local,
            quad.bl.x, quad.bl.y, quad.br.x, quad.br.y,
            quad.tl.x, quad.tl.y, quad.tr.x, quad.tr.y,
            cluster_id, image_id, orientation,
        ))
        return id_local

    def _create_face_data(self, face_id: int):
        """
        Empty biometric record. Aperture's face prints cannot be carried
        over; an empty row is what Lightroom has for a face drawn by hand.
        """
        self.db.execute(
            "INSERT INTO AgLibraryFaceData (id_local, data, face) VALUES (?, NULL, ?)",
            (self.ids.allocate(), face_id),
        )

    def _create_keyword_face(self, face_id: int, keyword_id: int):
        # userPick = 1: the name was confirmed by the user, not suggested
        self.db.execute("""
            INSERT INTO AgLibraryKeywordFace
                (id_local, face, keyFace, rankOrder, tag, userPick, userReject)
            VALUES (?, ?, NULL, NULL, ?, 1, 0)
        """, (self.ids.allocate(), face_id, keyword_id))

    def mark_face_process_done(self, image_id: int, orientation: str):
        """
        Marks the image as analysed and user touched, so Lightroom neither
        runs nor reruns face detection on it (even after an upgrade of its
        detector).
        """
        id_local = self.db.fetch_value(
            "SELECT id_local FROM Adobe_libraryImageFaceProcessHistory WHERE image = ?",
            (image_id,),
        )
        if id_local is None:
            self.db.execute("""
                INSERT INTO Adobe_libraryImageFaceProcessHistory
                    (id_local, image,
                     lastFaceDetector, lastFaceRecognizer, lastImageIndexer,
                     lastImageOrientation, lastTryStatus, userTouched)
                VALUES (?, ?, 2.0, 3.0, NULL, ?, 1.0, 1.0)
            """, (self.ids.allocate(), image_id, orientation))
        else:
            self.db.execute("""
                UPDATE Adobe_libraryImageFaceProcessHistory
                SET userTouched = 1.0,
                    lastTryStatus = 1.0,
                    lastImageOrientation = ?
                WHERE id_local = ?
            """, (orientation, id_local))
