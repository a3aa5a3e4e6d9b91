from __future__ import annotations

import base64
from xml.etree import ElementTree as ET

from .exceptions import InvalidBase64, InvalidXML, MissingControllerEntry

CONTROLLER_ENTRY = "DeviceIO.Config.Controller"

_DOCUMENT = (
    '<?xml version="1.0" encoding="UTF-8" standalone="no" ?>\n'
    '<NIXML><TraktorSettings><Entry Name="{name}" Type="3" Value="{value}"/>'
    "</TraktorSettings></NIXML>\n"
)


def _parse(xml_data: bytes) -> ET.Element:
    try:
        return ET.fromstring(xml_data)
    except ET.ParseError as e:
        raise InvalidXML(f"TSI document is not well-formed XML: {e}") from e


def _find_entry(root: ET.Element) -> ET.Element:
    for e in root.iter("Entry"):
        if e.attrib.get("Name") == CONTROLLER_ENTRY and e.attrib.get("Value"):
            return e
    raise MissingControllerEntry(f"{CONTROLLER_ENTRY} not found in TSI XML.")


def extract_controller_data(xml_data: bytes) -> str:
    """
    Returns the Base64 text of the controller mapping entry.

    Looks for <Entry Name="DeviceIO.Config.Controller" Type="3" Value="..."/>.
    """
    return _find_entry(_parse(xml_data)).attrib["Value"]


def decode_controller_data(text: str) -> bytes:
    """Base64-decodes the controller entry value; whitespace is ignored."""
    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except ValueError as e:  # binascii.Error, or non-ASCII text
        raise InvalidBase64(f"controller entry is not valid Base64: {e}") from e


def encode_controller_data(blob: bytes) -> str:
    return base64.b64encode(blob).decode("ascii")


def extract_mapping_blob(tsi_path: str) -> bytes:
    """Extracts and base64-decodes the controller mapping blob from a .tsi file."""
    with open(tsi_path, "rb") as f:
        return decode_controller_data(extract_controller_data(f.read()))


def build_document(text: str) -> bytes:
    """A minimal TSI document holding only the controller entry."""
    return _DOCUMENT.format(name=CONTROLLER_ENTRY, value=text).encode("utf-8")


def inject_controller_data(xml_data: bytes, text: str) -> bytes:
    """
    Replaces the controller entry value inside an existing settings document,
    leaving every other entry as it was.
    """
    root = _parse(xml_data)
    _find_entry(root).set("Value", text)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
