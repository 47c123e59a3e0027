"""Loudspeaker spinorama parsing, CEA2034 curves and preference scores."""

__version__ = "1.0.0"
