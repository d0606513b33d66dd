"""
Boundary Document Adapter
Reads rings out of a KML document and writes cleaned rings back into it
"""
from __future__ import annotations

from typing import List, Sequence
import math
import re
import logging
from urllib.parse import quote

from lxml import etree

from .geometry import LatLon, Ring

logger = logging.getLogger(__name__)

KML_MEDIA_TYPE = "application/vnd.google-earth.kml+xml"
TABLE_HEADER = "Longitude,Latitude"

# Matches the tag in any (or no) namespace
_COORDINATES_XPATH = "//*[local-name()='coordinates']"

# Namespaces whose name elements are placemark names; None is no namespace
KML_NAMESPACES = (
    None,
    "http://www.opengis.net/kml/2.2",
    "http://earth.google.com/kml/2.0",
    "http://earth.google.com/kml/2.1",
    "http://earth.google.com/kml/2.2",
)

_UNSAFE_FILENAME_CHARS = re.compile(r'["\x00-\x1f\x7f]')


class BoundaryDocumentError(Exception):
    """Raised when a boundary document cannot be read"""
    pass


def parse_boundary_document(text: str) -> etree._Element:
    """
    Parse KML text into an element tree root.

    Raises:
        BoundaryDocumentError: malformed XML or no coordinates elements
    """
    if not text or not text.strip():
        raise BoundaryDocumentError("Boundary document is empty")

    # Text is always handed to lxml as UTF-8, whatever the declaration claims
    parser = etree.XMLParser(encoding="utf-8", resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(text.strip().encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as e:
        raise BoundaryDocumentError(f"Malformed boundary document: {e}") from e

    if not coordinate_nodes(root):
        raise BoundaryDocumentError("document has no coordinates")
    return root


def coordinate_nodes(root: etree._Element) -> List[etree._Element]:
    return root.xpath(_COORDINATES_XPATH)


def node_text(node: etree._Element) -> str:
    return "".join(node.itertext()).strip()


def parse_coordinates(raw: str) -> Ring:
    """
    Parse 'lon,lat[,alt] lon,lat[,alt] ...' into (lat, lon) points.
    Tokens with fewer than two fields are ignored.

    Raises:
        BoundaryDocumentError: a longitude or latitude is not a finite number
    """
    points: Ring = []
    for token in raw.split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lon = float(parts[0])
            lat = float(parts[1])
        except ValueError as e:
            raise BoundaryDocumentError(f"Invalid coordinate token '{token}'") from e
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise BoundaryDocumentError(f"Invalid coordinate token '{token}'")
        points.append((lat, lon))
    return points


def format_coordinates(points: Sequence[LatLon]) -> str:
    return " ".join(f"{lon:.10f},{lat:.10f},0" for lat, lon in points)


def replace_coordinates(node: etree._Element, points: Sequence[LatLon]) -> None:
    for child in list(node):
        node.remove(child)
    node.text = format_coordinates(points)


def rename_placemarks(root: etree._Element, name: str) -> int:
    """Set the text of every KML (or un-namespaced) name element. Returns how many were renamed."""
    count = 0
    for node in root.iter(etree.Element):
        qname = etree.QName(node)
        if qname.localname == "name" and qname.namespace in KML_NAMESPACES:
            node.text = name
            count += 1
    return count


def serialize_document(root: etree._Element) -> str:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8").decode("utf-8")


def format_table(points: Sequence[LatLon]) -> str:
    """Tabular export: header line then one 'lon,lat' line per point."""
    lines = [TABLE_HEADER]
    lines.extend(f"{lon:.12f},{lat:.12f}" for lat, lon in points)
    return "\n".join(lines)


def export_filename(output_name: str, point_count: int) -> str:
    """Download name '<name>_<count>.kml' with path separators, quotes and control characters removed."""
    base = _UNSAFE_FILENAME_CHARS.sub("", output_name or "").strip()
    base = base.replace("/", "_").replace("\\", "_") or "boundary"
    return f"{base}_{point_count}.kml"


def content_disposition(filename: str) -> str:
    """
    Attachment header value for any filename.
    The plain filename parameter carries an ASCII fallback, filename* the UTF-8 original.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
