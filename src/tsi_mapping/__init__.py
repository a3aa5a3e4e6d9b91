"""Traktor TSI controller-mapping codec."""
from .codec import parse, parse_blob, write, write_blob
from .exceptions import (
    EnvelopeError,
    FrameError,
    InvalidBase64,
    InvalidIdentifier,
    InvalidXML,
    MissingControllerEntry,
    TruncatedHeader,
    TruncatedPayload,
    TsiError,
    UnsupportedFrameGrammar,
)
from .frames import Frame
from .interpreter import TsiInterpreter
from .models import Device, MappingEntry, MappingFile, ModifierCondition
from .writer import TsiWriter
from .xml import extract_mapping_blob

__all__ = [
    "parse",
    "write",
    "parse_blob",
    "write_blob",
    "extract_mapping_blob",
    "MappingFile",
    "Device",
    "MappingEntry",
    "ModifierCondition",
    "Frame",
    "TsiInterpreter",
    "TsiWriter",
    "TsiError",
    "FrameError",
    "TruncatedHeader",
    "TruncatedPayload",
    "InvalidIdentifier",
    "UnsupportedFrameGrammar",
    "EnvelopeError",
    "MissingControllerEntry",
    "InvalidXML",
    "InvalidBase64",
]
