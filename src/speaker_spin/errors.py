# src/speaker_spin/errors.py

"""
Exceptions raised by the parsers, the repair engine and the EQ engine.

Parse-time errors are fatal for the file being processed. Repairable gaps
never raise; they are tracked through the ``is_busted`` flag instead.
"""


class SpinError(Exception):
    """Base class of every error raised by speaker_spin."""


class ParseError(SpinError, ValueError):
    """A measurement archive could not be turned into curves."""


class UnknownFormatError(ParseError):
    """The archive matches none of the known file name signatures."""


class MalformedRecordError(ParseError):
    """A required file, dataset or angle is absent, or its numbers are unusable."""


class MatFormatError(ParseError):
    """Structural violation in a MATLAB v4 matrix file."""


class EqConfigError(SpinError, ValueError):
    """An equalizer configuration line could not be understood."""


class MissingCurveError(SpinError, KeyError):
    """A curve that the vendor did not supply was requested."""
