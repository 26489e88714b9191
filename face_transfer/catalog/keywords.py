"""
Lightroom keyword tree maintenance.

Lightroom encodes each keyword's position in the `genealogy` column:
the parent's genealogy, a slash, the number of digits of the id, then the
id itself (e.g. "/41234/51000017"). Subtree queries are plain prefix
matches on that string.
"""
import logging
import unicodedata
from typing import Dict, Optional, Tuple

from .. import config
from ..database.ops import DBOperations
from ..exceptions import DatabaseError, NotFoundError
from ..models import KeywordRoots
from .ids import IdAllocator, new_global_id, parse_integer

# Children before parents
KEYWORD_CLEANUP = [
    "DELETE FROM AgLibraryKeywordCooccurrence",
    "DELETE FROM AgLibraryKeywordFace",
    "DELETE FROM AgLibraryKeywordImage",
    "DELETE FROM AgLibraryKeywordPopularity",
    "DELETE FROM AgLibraryKeywordSynonym",
    "DELETE FROM AgLibraryKeyword",
]


def normalize(text: str) -> str:
    """
    Aperture stores text in decomposed form ("o" + COMBINING DIAERESIS).
    Lightroom compares keyword names byte by byte, and Windows renders the
    decomposed form badly, so everything we write is composed (NFC).
    """
    return unicodedata.normalize("NFC", text)


def child_genealogy(parent_genealogy: str, id_local: int) -> str:
    digits = str(id_local)
    return f"{parent_genealogy}/{len(digits)}{digits}"


class KeywordTree:
    def __init__(self, db_ops: DBOperations, allocator: IdAllocator):
        self.db = db_ops
        self.ids = allocator
        # (parent_id, name, keyword_type) -> id_local, valid for this run only
        self._known: Dict[Tuple[int, str, Optional[str]], int] = {}

    def remove_all(self):
        logging.info("Removing keywords...")
        self.db.run_cleanup(KEYWORD_CLEANUP)
        self._known.clear()

    def recreate_roots(self, face_folder: str, tag_folder: str) -> KeywordRoots:
        """
        Recreates the catalog's top keyword and the folders that face and
        tag keywords go into. An empty folder name puts those keywords
        directly under the top keyword.
        """
        value = self.db.get_variable(config.ROOT_KEYWORD_VAR)
        try:
            top_id = parse_integer(value)
        except ValueError:
            raise NotFoundError(f"Catalog has no usable {config.ROOT_KEYWORD_VAR}: {value!r}")
        if top_id < 0:
            raise NotFoundError(f"Catalog has no usable {config.ROOT_KEYWORD_VAR}: {value!r}")

        top_genealogy = child_genealogy("", top_id)
        self.db.execute(f"""
            INSERT INTO AgLibraryKeyword (id_local, id_global, dateCreated, genealogy,
                imageCountCache, keywordType, lastApplied, lc_name, name, parent)
            VALUES (?, ?, {config.COCOA_NOW_SQL}, ?, NULL, NULL, NULL, NULL, NULL, NULL)
        """, (top_id, new_global_id(), top_genealogy))
        logging.debug(f"Recreated keyword root {top_id} ({top_genealogy})")

        face_id, face_genealogy = top_id, top_genealogy
        if face_folder:
            face_id, face_genealogy = self.create(normalize(face_folder), top_id, top_genealogy)
            self._set_default_parent(config.NEW_PERSON_PARENT_VAR, face_id)

        tag_id, tag_genealogy = top_id, top_genealogy
        if tag_folder:
            tag_id, tag_genealogy = self.create(normalize(tag_folder), top_id, top_genealogy)
            self._set_default_parent(config.NEW_KEYWORD_PARENT_VAR, tag_id)

        return KeywordRoots(
            top_id=top_id, top_genealogy=top_genealogy,
            face_root_id=face_id, face_root_genealogy=face_genealogy,
            tag_root_id=tag_id, tag_root_genealogy=tag_genealogy,
        )

    def _set_default_parent(self, variable: str, keyword_id: int):
        """Makes Lightroom put newly entered keywords of this kind into our folder."""
        try:
            if self.db.has_variable(variable):
                self.db.update_variable(variable, keyword_id)
            else:
                self.db.insert_variable(self.ids.allocate(), new_global_id(), variable, keyword_id)
        except DatabaseError as e:
            # Lightroom falls back to the top keyword; nothing else depends on it
            logging.error(f"Failed to set {variable}: {e}")

    def find(self, name: str, parent_genealogy: str,
             keyword_type: Optional[str] = None) -> Optional[int]:
        """
        Looks for `name` anywhere below the keyword with `parent_genealogy`.
        Person keywords only match other person keywords, so a person and a
        plain tag with the same name stay apart.
        """
        return self.db.fetch_value("""
            SELECT id_local
            FROM AgLibraryKeyword
            WHERE genealogy LIKE ?
            AND name IS ?
            AND keywordType IS ?
            ORDER BY id_local
            LIMIT 1
        """, (f"{parent_genealogy}/%", name, keyword_type))

    def create(self, name: str, parent_id: int, parent_genealogy: str,
               keyword_type: Optional[str] = None) -> Tuple[int, str]:
        """
        Inserts a keyword below `parent_id`. Returns (id_local, genealogy).

        The genealogy embeds the new id, so the id is allocated first and the
        row is written with its final genealogy in a single statement.
        """
        id_local = self.ids.allocate()
        genealogy = child_genealogy(parent_genealogy, id_local)

        self.db.execute(f"""
            INSERT INTO AgLibraryKeyword (id_local, id_global, dateCreated, genealogy,
                imageCountCache, keywordType, lastApplied, lc_name, name, parent)
            VALUES (?, ?, {config.COCOA_NOW_SQL}, ?, NULL, ?, {config.COCOA_NOW_SQL}, ?, ?, ?)
        """, (id_local, new_global_id(), genealogy, keyword_type, name.lower(), name, parent_id))

        logging.debug(f"Created keyword '{name}' ({genealogy})")
        return id_local, genealogy

    def find_or_create(self, name: str, parent_id: int, parent_genealogy: str,
                       keyword_type: Optional[str] = None) -> int:
        key = (parent_id, name, keyword_type)
        if key in self._known:
            return self._known[key]

        keyword_id = self.find(name, parent_genealogy, keyword_type)
        if keyword_id is None:
            keyword_id, _ = self.create(name, parent_id, parent_genealogy, keyword_type)

        self._known[key] = keyword_id
        return keyword_id

    def normalize_names(self) -> int:
        """
        Rewrites every keyword name in composed form. Returns how many
        keywords changed.
        """
        rows = self.db.fetchall("SELECT id_local, lc_name, name FROM AgLibraryKeyword")
        changed = 0
        for id_local, lc_name, name in rows:
            new_lc = normalize(lc_name) if lc_name else None
            new_name = normalize(name) if name else None
            if new_lc == (lc_name or None) and new_name == (name or None):
                continue

            logging.info(f"Normalizing keyword \"{name}\"")
            self.db.execute("""
                UPDATE AgLibraryKeyword
                SET lc_name = ?, name = ?
                WHERE id_local = ?
            """, (new_lc, new_name, id_local))
            changed += 1
        return changed

    def ensure_image_link(self, image_id: int, keyword_id: int) -> bool:
        """
        Assigns the keyword to the image unless it already is.
        Returns True if a link was created (and popularity bumped).
        """
        count = self.db.fetch_value("""
            SELECT count(*)
            FROM AgLibraryKeywordImage
            WHERE image = ?
            AND tag = ?
        """, (image_id, keyword_id))
        if count:
            return False

        self.db.execute(
            "INSERT INTO AgLibraryKeywordImage (id_local, image, tag) VALUES (?, ?, ?)",
            (self.ids.allocate(), image_id, keyword_id),
        )
        self.increment_popularity(keyword_id)
        return True

    def increment_popularity(self, keyword_id: int):
        """
        Each use of a keyword adds the shared popularity increment to it, and
        the increment itself grows by 10%. New uses count more than old ones,
        so frequently used keywords decline slowly unless used again.
        """
        step = self.db.get_variable(config.POPULARITY_INCREMENT_VAR)
        if step is None:
            logging.debug(f"{config.POPULARITY_INCREMENT_VAR} not set; popularity step is 0")
            step = 0.0
        step = float(step)
        self.db.update_variable(config.POPULARITY_INCREMENT_VAR, step * config.POPULARITY_GROWTH)

        row = self.db.fetchone("""
            SELECT id_local, occurrences, popularity
            FROM AgLibraryKeywordPopularity
            WHERE tag = ?
        """, (keyword_id,))
        if row is None:
            id_local, occurrences, popularity = self.ids.allocate(), 0, 0.0
        else:
            id_local, occurrences, popularity = row[0], int(row[1] or 0), float(row[2] or 0.0)

        self.db.execute("""
            INSERT OR REPLACE INTO AgLibraryKeywordPopularity
                (id_local, occurrences, popularity, tag)
            VALUES (?, ?, ?, ?)
        """, (id_local, occurrences + 1, popularity + step, keyword_id))
