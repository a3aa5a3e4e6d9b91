"""
Open/save boundary: TSI document bytes <-> MappingFile.

    parse(data) -> MappingFile     raises a TsiError subclass on failure
    write(mapping_file) -> bytes   a complete TSI document

Both are pure functions over in-memory buffers and safe to call from any thread.
"""
from __future__ import annotations

from typing import Optional

from .interpreter import TsiInterpreter
from .models import MappingFile
from .writer import TsiWriter
from .xml import (
    build_document,
    decode_controller_data,
    encode_controller_data,
    extract_controller_data,
    inject_controller_data,
)


def parse_blob(blob: bytes, strict_counts: bool = False) -> MappingFile:
    """Decoded controller blob -> MappingFile."""
    return TsiInterpreter(strict_counts=strict_counts).parse(blob)


def write_blob(mapping_file: MappingFile) -> bytes:
    """MappingFile -> controller blob (before Base64)."""
    return TsiWriter().write(mapping_file)


def parse(data: bytes, strict_counts: bool = False) -> MappingFile:
    blob = decode_controller_data(extract_controller_data(data))
    return parse_blob(blob, strict_counts=strict_counts)


def write(mapping_file: MappingFile, template: Optional[bytes] = None) -> bytes:
    """
    Serializes to a TSI document. With ``template`` (the bytes of the document
    that was opened) the controller entry is replaced in place and the other
    settings entries are kept.
    """
    text = encode_controller_data(write_blob(mapping_file))
    if template is None:
        return build_document(text)
    return inject_controller_data(template, text)
