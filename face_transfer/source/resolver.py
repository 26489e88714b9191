"""
Finds the Aperture data belonging to a Lightroom image.

Lightroom only knows the file name and modification time of an image, so
that is what we match Aperture's masters on. A Lightroom "copy" (virtual
copy named VERSION-<n>) maps to Aperture version n; otherwise the latest
version is used.
"""
import logging
import re
from typing import List, Optional, Tuple

from .. import config
from ..catalog.keywords import normalize
from ..database.ops import DBOperations
from ..exceptions import AmbiguousMatchError, NotFoundError
from ..models import Point, Quad, SourceFace

_COPY_NUMBER = re.compile(r"\s*([+-]?\d+)")


def version_bound(copy_name: Optional[str]) -> int:
    """
    Highest Aperture versionNumber the copy may use.
    "VERSION-3" is Aperture's third version, i.e. versionNumber 2.
    """
    if copy_name and copy_name.startswith(config.VERSION_TOKEN_PREFIX):
        m = _COPY_NUMBER.match(copy_name[len(config.VERSION_TOKEN_PREFIX):])
        number = int(m.group(1)) if m else 0
        # Keep the bound within SQLite's signed 64-bit range
        number = max(min(number, config.LATEST_VERSION + 1), -config.LATEST_VERSION)
        return number - 1 if number > 0 else number
    return config.LATEST_VERSION


class ApertureResolver:
    def __init__(self, library_ops: DBOperations, faces_ops: DBOperations):
        self.library = library_ops
        self.faces = faces_ops

    def resolve_photo(self, file_name: str, mod_time: int) -> str:
        """
        Returns the uuid of the master for the file.

        Several masters with the same name and time are tolerated (with a
        warning); the one that is not missing wins. Without an exact match
        we retry on the modification time alone, but that match must be
        unique.
        """
        rows = self.library.fetchall("""
            SELECT uuid, isMissing
            FROM RKMaster
            WHERE fileName = ?
            AND fileModificationDate = ?
            GROUP BY imagePath
            ORDER BY isMissing
        """, (file_name, mod_time))

        if rows:
            if len(rows) > 1:
                duplicates_present = sum(1 for _, missing in rows[1:] if not missing)
                if duplicates_present:
                    logging.warning(f"More than one master for {file_name}, date {mod_time}; using {rows[0][0]}")
                else:
                    logging.warning(f"Ignoring {len(rows) - 1} missing duplicate(s) of {file_name}, date {mod_time}")
            return rows[0][0]

        logging.warning(f"No master named {file_name} with date {mod_time}, searching by date only")
        rows = self.library.fetchall(
            "SELECT uuid FROM RKMaster WHERE fileModificationDate = ? LIMIT 2",
            (mod_time,),
        )
        if not rows:
            raise NotFoundError(f"No master found for {file_name}, date {mod_time}")
        if len(rows) > 1:
            raise AmbiguousMatchError(
                f"Master for {file_name}, date {mod_time} is not unique when searching by date only"
            )

        logging.info(f"Found master for {file_name} by date.")
        return rows[0][0]

    def resolve_version(self, master_uuid: str, copy_name: Optional[str] = None) -> int:
        version_id = self.library.fetch_value("""
            SELECT modelId
            FROM RKVersion
            WHERE masterUuid = ?
            AND versionNumber <= ?
            ORDER BY versionNumber DESC
        """, (master_uuid, version_bound(copy_name)))
        if version_id is None:
            raise NotFoundError(f"No version of master {master_uuid} for copy {copy_name!r}")
        return version_id

    def list_faces(self, master_uuid: str) -> List[SourceFace]:
        rows = self.faces.fetchall("""
            SELECT bottomLeftX, bottomLeftY, bottomRightX, bottomRightY,
                   topLeftX, topLeftY, topRightX, topRightY, faceKey
            FROM RKDetectedFace
            WHERE masterUuid = ?
            AND rejected = 0
            ORDER BY modelId
        """, (master_uuid,))

        faces = []
        for bl_x, bl_y, br_x, br_y, tl_x, tl_y, tr_x, tr_y, face_key in rows:
            quad = Quad(
                bl=Point(bl_x, bl_y), br=Point(br_x, br_y),
                tl=Point(tl_x, tl_y), tr=Point(tr_x, tr_y),
            )
            faces.append(SourceFace(quad=quad, name=self._face_name(face_key)))
        return faces

    def _face_name(self, face_key) -> Optional[str]:
        if face_key is None:
            return None
        name = self.faces.fetch_value(
            "SELECT name FROM RKFaceName WHERE faceKey = ?",
            (int(face_key),),
        )
        return normalize(name) if name else None

    def list_keywords(self, version_id: int) -> List[str]:
        rows = self.library.fetchall("""
            SELECT K.name
            FROM RKKeyword K, RKKeywordForVersion V
            WHERE K.modelId = V.keywordId
            AND V.versionId = ?
            ORDER BY V.modelId
        """, (version_id,))
        return [r[0] for r in rows if r[0]]

    def resolve_stack_id(self, version_id: int) -> Optional[str]:
        stack_uuid = self.library.fetch_value(
            "SELECT stackUuid FROM RKVersion WHERE modelId = ?",
            (version_id,),
        )
        return stack_uuid or None

    def resolve_gps(self, version_id: int) -> Optional[Tuple[float, float]]:
        row = self.library.fetchone(
            "SELECT exifLatitude, exifLongitude FROM RKVersion WHERE modelId = ?",
            (version_id,),
        )
        if row is None or row[0] is None or row[1] is None:
            return None
        return float(row[0]), float(row[1])
