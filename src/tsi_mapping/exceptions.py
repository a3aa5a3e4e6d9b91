class TsiError(Exception):
    """Base exception for TSI codec errors."""


class FrameError(TsiError):
    """Invalid or malformed frame encountered."""


class TruncatedHeader(FrameError):
    """Fewer than 8 bytes left where a frame header was expected."""


class TruncatedPayload(FrameError):
    """Frame size (or a field inside a frame) runs past the available bytes."""


class InvalidIdentifier(FrameError):
    """Frame identifier is not 4 ASCII characters."""


class UnsupportedFrameGrammar(FrameError):
    """Container nesting that cannot be resolved into devices/mappings."""


class EnvelopeError(TsiError):
    """Problem with the XML document wrapping the controller blob."""


class MissingControllerEntry(EnvelopeError):
    """DeviceIO.Config.Controller not found in TSI XML."""


class InvalidXML(EnvelopeError):
    """The TSI document is not well-formed XML."""


class InvalidBase64(EnvelopeError):
    """The controller entry value is not valid Base64."""
