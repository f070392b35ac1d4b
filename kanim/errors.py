"""
Error taxonomy for the converter.

Every fatal condition raised while reading a Spriter project or encoding the
build/anim pair derives from ConversionError so front ends can report it
without a traceback.
"""


class ConversionError(RuntimeError):
    """Base class for fatal conversion errors."""


class StructuralFormatError(ConversionError):
    """A required SCML tag or attribute is missing or in the wrong place."""


class NamingConventionError(ConversionError):
    """A sprite file name does not follow the name_<n>.png convention."""


class UnresolvedReferenceError(ConversionError):
    """A sprite, file id or symbol name could not be resolved."""


class NonAsciiStringError(ConversionError):
    """A string headed for a binary file cannot be encoded as ASCII."""
