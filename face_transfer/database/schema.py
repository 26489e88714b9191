"""
Database schema definitions.

Neither store belongs to us: the catalog schema is Lightroom's and the
library/faces schemas are Aperture's. These tables list only the columns
the transfer reads or writes. They are used to verify a store before
touching it, and to build throwaway stores for tests.
"""
import sqlite3
import logging
from typing import Dict, Tuple

from ..exceptions import SchemaError

Schema = Dict[str, Tuple[str, ...]]

# --- Lightroom catalog (.lrcat) ---
CATALOG_SCHEMA: Schema = {
    "Adobe_variablesTable": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "name",
        "type",
        "value NOT NULL DEFAULT ''",
    ),
    "Adobe_images": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "copyName",
        "orientation",
        "rootFile INTEGER NOT NULL DEFAULT 0",
    ),
    "AgLibraryRootFolder": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "absolutePath UNIQUE NOT NULL DEFAULT ''",
        "name NOT NULL DEFAULT ''",
    ),
    "AgLibraryFolder": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "pathFromRoot NOT NULL DEFAULT ''",
        "rootFolder INTEGER NOT NULL DEFAULT 0",
    ),
    "AgLibraryFile": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "baseName NOT NULL DEFAULT ''",
        "extension NOT NULL DEFAULT ''",
        "externalModTime",
        "folder INTEGER NOT NULL DEFAULT 0",
        "originalFilename NOT NULL DEFAULT ''",
    ),
    "AgLibraryKeyword": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "dateCreated NOT NULL DEFAULT ''",
        "genealogy NOT NULL DEFAULT ''",
        "imageCountCache DEFAULT -1",
        "keywordType",
        "lastApplied",
        "lc_name",
        "name",
        "parent INTEGER",
    ),
    "AgLibraryKeywordImage": (
        "id_local INTEGER PRIMARY KEY",
        "image INTEGER NOT NULL DEFAULT 0",
        "tag INTEGER NOT NULL DEFAULT 0",
    ),
    "AgLibraryKeywordFace": (
        "id_local INTEGER PRIMARY KEY",
        "face INTEGER NOT NULL DEFAULT 0",
        "keyFace INTEGER",
        "rankOrder",
        "tag INTEGER NOT NULL DEFAULT 0",
        "userPick INTEGER",
        "userReject INTEGER",
    ),
    "AgLibraryKeywordPopularity": (
        "id_local INTEGER PRIMARY KEY",
        "occurrences NOT NULL DEFAULT 0",
        "popularity NOT NULL DEFAULT 0",
        "tag UNIQUE NOT NULL DEFAULT ''",
    ),
    "AgLibraryKeywordCooccurrence": (
        "id_local INTEGER PRIMARY KEY",
        "tag1 NOT NULL DEFAULT ''",
        "tag2 NOT NULL DEFAULT ''",
        "value NOT NULL DEFAULT 0",
    ),
    "AgLibraryKeywordSynonym": (
        "id_local INTEGER PRIMARY KEY",
        "keyword INTEGER NOT NULL DEFAULT 0",
        "lc_name",
        "name",
    ),
    "AgLibraryFace": (
        "id_local INTEGER PRIMARY KEY",
        "bl_x", "bl_y", "br_x", "br_y",
        "cluster INTEGER",
        "compatibleVersion",
        "ignored INTEGER",
        "image INTEGER NOT NULL DEFAULT 0",
        "imageOrientation NOT NULL DEFAULT ''",
        "orientation",
        "origination NOT NULL DEFAULT 0",
        "propertiesCache",
        "regionType NOT NULL DEFAULT 0",
        "skipSuggestion INTEGER",
        "tl_x NOT NULL DEFAULT ''", "tl_y NOT NULL DEFAULT ''",
        "tr_x", "tr_y",
        "version",
    ),
    "AgLibraryFaceCluster": (
        "id_local INTEGER PRIMARY KEY",
        "keyFace INTEGER",
    ),
    "AgLibraryFaceData": (
        "id_local INTEGER PRIMARY KEY",
        "data",
        "face INTEGER NOT NULL DEFAULT 0",
    ),
    "Adobe_libraryImageFaceProcessHistory": (
        "id_local INTEGER PRIMARY KEY",
        "image INTEGER NOT NULL DEFAULT 0",
        "lastFaceDetector",
        "lastFaceRecognizer",
        "lastImageIndexer",
        "lastImageOrientation",
        "lastTryStatus",
        "userTouched",
    ),
    "AgLibraryFolderStack": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "collapsed INTEGER NOT NULL DEFAULT 0",
        "text NOT NULL DEFAULT ''",
    ),
    "AgLibraryFolderStackData": (
        "stack INTEGER PRIMARY KEY",
        "stackCount INTEGER NOT NULL DEFAULT 0",
        "stackParent INTEGER",
    ),
    "AgLibraryFolderStackImage": (
        "id_local INTEGER PRIMARY KEY",
        "collapsed INTEGER NOT NULL DEFAULT 0",
        "image INTEGER NOT NULL DEFAULT 0",
        "position NOT NULL DEFAULT ''",
        "stack INTEGER NOT NULL DEFAULT 0",
    ),
    "AgHarvestedExifMetadata": (
        "id_local INTEGER PRIMARY KEY",
        "image INTEGER",
        "gpsLatitude",
        "gpsLongitude",
        "gpsSequence NOT NULL DEFAULT 0",
        "hasGPS INTEGER",
    ),
    "Adobe_AdditionalMetadata": (
        "id_local INTEGER PRIMARY KEY",
        "id_global UNIQUE NOT NULL",
        "image INTEGER NOT NULL DEFAULT 0",
        "xmp NOT NULL DEFAULT ''",
    ),
}

# --- Aperture Library.apdb ---
LIBRARY_SCHEMA: Schema = {
    "RKMaster": (
        "modelId INTEGER PRIMARY KEY AUTOINCREMENT",
        "uuid VARCHAR",
        "fileName VARCHAR",
        "imagePath VARCHAR",
        "fileModificationDate TIMESTAMP",
        "isMissing INTEGER",
    ),
    "RKVersion": (
        "modelId INTEGER PRIMARY KEY AUTOINCREMENT",
        "uuid VARCHAR",
        "masterUuid VARCHAR",
        "versionNumber INTEGER",
        "stackUuid VARCHAR",
        "exifLatitude DECIMAL",
        "exifLongitude DECIMAL",
    ),
    "RKKeyword": (
        "modelId INTEGER PRIMARY KEY AUTOINCREMENT",
        "uuid VARCHAR",
        "name VARCHAR",
    ),
    "RKKeywordForVersion": (
        "modelId INTEGER PRIMARY KEY AUTOINCREMENT",
        "versionId INTEGER",
        "keywordId INTEGER",
    ),
}

# --- Aperture Faces.db ---
FACES_SCHEMA: Schema = {
    "RKDetectedFace": (
        "modelId INTEGER PRIMARY KEY AUTOINCREMENT",
        "uuid VARCHAR",
        "masterUuid VARCHAR",
        "faceKey INTEGER",
        "rejected INTEGER",
        "topLeftX DECIMAL", "topLeftY DECIMAL",
        "topRightX DECIMAL", "topRightY DECIMAL",
        "bottomLeftX DECIMAL", "bottomLeftY DECIMAL",
        "bottomRightX DECIMAL", "bottomRightY DECIMAL",
    ),
    "RKFaceName": (
        "modelId INTEGER PRIMARY KEY AUTOINCREMENT",
        "faceKey INTEGER",
        "name VARCHAR",
    ),
}


def _column_name(definition: str) -> str:
    return definition.split()[0]


def init_schema(conn: sqlite3.Connection, schema: Schema):
    """
    Creates the given tables.
    Idempotent: safe to run against a store that already has them.
    """
    for table, columns in schema.items():
        conn.execute(f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(columns)})")
    logging.debug(f"Schema initialized ({len(schema)} tables).")


def check_schema(conn: sqlite3.Connection, schema: Schema):
    """
    Verifies every table and column in `schema` exists.
    Raises SchemaError listing everything that is missing.
    """
    missing = []
    for table, columns in schema.items():
        rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
        if not rows:
            missing.append(table)
            continue
        present = {row[1] for row in rows}
        missing.extend(
            f"{table}.{_column_name(c)}" for c in columns if _column_name(c) not in present
        )

    if missing:
        raise SchemaError(f"Unexpected database layout, missing: {', '.join(missing)}")
