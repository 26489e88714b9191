"""
GPS patching of the XMP packet Lightroom keeps for every image.
"""
from io import BytesIO
from typing import Optional

from lxml import etree

from .. import config
from ..exceptions import XmpPatchError


def _local_name(node) -> Optional[str]:
    if not isinstance(node.tag, str):
        # comments and processing instructions
        return None
    return etree.QName(node).localname


def find_child(node, local_name: str):
    """First direct child with the given local name (namespace ignored)."""
    for child in node:
        if _local_name(child) == local_name:
            return child
    return None


def format_coordinate(value: float, positive: str, negative: str):
    """
    Returns ("<degrees>,<decimal minutes><ref>", ref) as XMP wants GPS
    coordinates, e.g. (52.5, "N", "S") -> ("52,30.0000000000N", "N").
    """
    ref = positive if value >= 0 else negative
    value = abs(value)
    degrees = int(value)
    return f"{degrees},{(value - degrees) * 60:.10f}{ref}", ref


def _exif_prefix(description) -> Optional[str]:
    """Prefix already bound to the EXIF namespace at the Description, if any."""
    for prefix, uri in description.nsmap.items():
        # A default (None) binding cannot qualify attributes
        if prefix and uri == config.EXIF_NS:
            return prefix
    return None


def _free_prefix(description) -> str:
    in_scope = description.nsmap
    if config.EXIF_PREFIX not in in_scope:
        return config.EXIF_PREFIX
    for counter in range(config.MAX_PREFIX_ATTEMPTS):
        candidate = f"{config.EXIF_PREFIX}{counter}"
        if candidate not in in_scope:
            return candidate
    raise XmpPatchError("No free prefix for the EXIF namespace")


def _declare_exif(description, prefix: str):
    """
    Returns a copy of `description` that additionally declares `prefix`,
    put in the place of the original. lxml cannot add a namespace
    declaration to an existing element.
    """
    parent = description.getparent()
    inherited = parent.nsmap
    own = {p: uri for p, uri in description.nsmap.items() if inherited.get(p) != uri}
    own[prefix] = config.EXIF_NS

    replacement = etree.SubElement(parent, description.tag, nsmap=own)
    for name, value in description.attrib.items():
        replacement.set(name, value)
    replacement.text = description.text
    replacement.tail = description.tail
    for child in list(description):
        replacement.append(child)

    parent.insert(parent.index(description), replacement)
    parent.remove(description)
    return replacement


def patch_gps(document: bytes, latitude: float, longitude: float) -> bytes:
    """
    Writes the position into the first rdf:Description of the packet and
    drops every other GPS property that would no longer match it.

    The input is left untouched; the patched document is returned.
    Raises XmpPatchError if the document can't be parsed or patched.
    """
    parser = etree.XMLParser(no_network=True, resolve_entities=False)
    try:
        tree = etree.parse(BytesIO(document), parser)
    except etree.XMLSyntaxError as e:
        raise XmpPatchError(f"Can't parse XMP: {e}") from e

    rdf = find_child(tree.getroot(), "RDF")
    if rdf is None:
        raise XmpPatchError("XMP has no RDF element")
    description = find_child(rdf, "Description")
    if description is None:
        raise XmpPatchError("XMP has no Description element")

    if _exif_prefix(description) is None:
        description = _declare_exif(description, _free_prefix(description))

    lat_str, lat_ref = format_coordinate(latitude, "N", "S")
    lon_str, lon_ref = format_coordinate(longitude, "E", "W")

    def exif(name: str) -> str:
        return f"{{{config.EXIF_NS}}}{name}"

    try:
        description.set(exif("GPSVersionID"), config.GPS_VERSION_ID)
        description.set(exif("GPSLatitude"), lat_str)
        description.set(exif("GPSLongitude"), lon_str)
        description.set(exif("GPSLatitudeRef"), lat_ref)
        description.set(exif("GPSLongitudeRef"), lon_ref)
        for name in config.OBSOLETE_GPS_ATTRS:
            description.attrib.pop(exif(name), None)
    except (ValueError, TypeError) as e:
        raise XmpPatchError(f"Can't update GPS properties: {e}") from e

    return etree.tostring(tree, encoding="UTF-8", xml_declaration=True, pretty_print=True)
