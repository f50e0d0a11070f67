"""Exceptions raised by BeamMark helpers.

Labeling engines degrade to partial output instead of raising; these are
reserved for caller mistakes in editing helpers.
"""


class BeamMarkError(Exception):
    """Base class for BeamMark errors."""


class InvalidLabelError(BeamMarkError, ValueError):
    """A label does not follow the expected "{prefix}{number}-{position}" shape."""
