"""
===========================================================
strap_fit.errors: exception types
===========================================================

Every failure is scoped to a single load / render / detect call; none of
these leave a session or a surface half-updated.
"""


class StrapFitError(Exception):
    """Base class for the package's errors."""


class LoadError(StrapFitError):
    """A source could not be read or decoded (corrupt data, bad format, network)."""


class RenderError(StrapFitError):
    """A frame could not be produced; the previous frame stays visible."""


class DetectionLowConfidence(UserWarning):
    """
    Dial detection found nothing usable and fell back to a centered default.

    Issued with warnings.warn, never raised; the returned detection also
    carries `low_confidence` so callers can tell a guess from a hit.
    """
