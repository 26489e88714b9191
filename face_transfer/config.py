"""
Configuration constants for the face transfer.
"""
from pathlib import Path

# --- Locations ---
DEFAULT_CATALOG = Path("Lightroom Catalog.lrcat")
DEFAULT_LIBRARY = Path.home() / "Pictures" / "Aperture Library.aplibrary"

# Both databases live inside the Aperture library bundle
LIBRARY_DB_SUBPATH = Path("Database") / "Library.apdb"
FACES_DB_SUBPATH = Path("Database") / "Faces.db"

LOG_FILE_NAME = "transfer_faces.log"

# --- Keyword Folders ---
# Empty string means "use the catalog's top keyword root"
DEFAULT_FACE_FOLDER = "Faces from Aperture"
DEFAULT_TAG_FOLDER = "Tags from Aperture"

PERSON_KEYWORD_TYPE = "person"

# --- Catalog Variables (Adobe_variablesTable.name) ---
ID_COUNTER_VAR = "Adobe_entityIDCounter"
ROOT_KEYWORD_VAR = "AgLibraryKeyword_rootTagID"
POPULARITY_INCREMENT_VAR = "LibraryKeywordSuggestions_popularityIncrement"
NEW_PERSON_PARENT_VAR = "AgLibraryKeywords_newPersonKeywordParent"
NEW_KEYWORD_PARENT_VAR = "AgLibraryKeywords_newKeywordParent"

# Each use of the popularity increment makes the next one 10% larger
POPULARITY_GROWTH = 1.1

# Lightroom stores dates as seconds since 2001-01-01 (Cocoa reference date)
COCOA_NOW_SQL = "(julianday('now') - 2440587.5)*86400.0 - strftime('%s','2001-01-01 00:00:00')"

# --- Source Versions ---
VERSION_TOKEN_PREFIX = "VERSION-"
LATEST_VERSION = 2**63 - 1

# --- XMP ---
EXIF_NS = "http://ns.adobe.com/exif/1.0/"
EXIF_PREFIX = "exif"
MAX_PREFIX_ATTEMPTS = 2**15 - 1
GPS_VERSION_ID = "2.0.0.0"

# GPS properties that no longer match the transferred position
OBSOLETE_GPS_ATTRS = [
    "GPSAltitude",
    "GPSAltitudeRef",
    "GPSAreaInformation",
    "GPSDOP",
    "GPSDateStamp",
    "GPSDestBearing",
    "GPSDestBearingRef",
    "GPSDestDistance",
    "GPSDestDistanceRef",
    "GPSDestLatitude",
    "GPSDestLatitudeRef",
    "GPSDestLongitude",
    "GPSDestLongitudeRef",
    "GPSDifferential",
    "GPSHPositioningError",
    "GPSImgDirection",
    "GPSImgDirectionRef",
    "GPSMapDatum",
    "GPSMeasureMode",
    "GPSProcessingMethod",
    "GPSSatellites",
    "GPSSpeed",
    "GPSSpeedRef",
    "GPSStatus",
    "GPSTimeStamp",
    "GPSTrack",
    "GPSTrackRef",
]
