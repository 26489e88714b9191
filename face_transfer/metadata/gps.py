import logging
import struct
import zlib
from typing import Union

from ..database.ops import DBOperations
from ..exceptions import XmpPatchError
from .xmp import patch_gps

XmpValue = Union[str, bytes]


def decode_xmp(value: XmpValue) -> bytes:
    """
    Returns the XMP packet as bytes.
    Older catalogs store plain text; Lightroom Classic stores a blob made of
    the 4-byte big-endian uncompressed length followed by a zlib stream.
    """
    if isinstance(value, str):
        return value.encode("utf-8")
    if is_compressed(value):
        expected = struct.unpack(">I", value[:4])[0]
        try:
            data = zlib.decompress(value[4:])
        except zlib.error as e:
            raise XmpPatchError(f"Failed to decompress XMP data: {e}") from e
        if len(data) != expected:
            logging.warning(f"Decompressed XMP length ({len(data)}) does not match header ({expected})")
        return data
    return bytes(value)


def is_compressed(value: XmpValue) -> bool:
    return isinstance(value, bytes) and len(value) > 4 and not value.lstrip().startswith(b"<")


def encode_xmp(data: bytes, like: XmpValue) -> XmpValue:
    """Stores `data` the same way `like` was stored."""
    if isinstance(like, str):
        return data.decode("utf-8")
    if is_compressed(like):
        return struct.pack(">I", len(data)) + zlib.compress(data)
    return data


class GpsTransfer:
    """Copies an Aperture position into the catalog's EXIF cache and XMP."""
    def __init__(self, db_ops: DBOperations):
        self.db = db_ops

    def transfer(self, image_id: int, latitude: float, longitude: float) -> bool:
        """
        Returns False if the image has no XMP to patch (the EXIF cache is
        still updated). Raises on database or XMP errors.
        """
        self.db.execute("""
            UPDATE AgHarvestedExifMetadata
            SET gpsLatitude = ?,
                gpsLongitude = ?,
                gpsSequence = 1,
                hasGPS = 1
            WHERE image = ?
        """, (latitude, longitude, image_id))

        stored = self.db.fetch_value(
            "SELECT xmp FROM Adobe_AdditionalMetadata WHERE image = ?",
            (image_id,),
        )
        if not stored:
            logging.warning(f"Did not find additional metadata for image {image_id}")
            return False

        patched = patch_gps(decode_xmp(stored), latitude, longitude)
        self.db.execute(
            "UPDATE Adobe_AdditionalMetadata SET xmp = ? WHERE image = ?",
            (encode_xmp(patched, stored), image_id),
        )
        return True
