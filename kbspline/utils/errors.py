"""
Exception types raised by kbspline.

Every rejected operation leaves the spline exactly as it was before the call.
"""


class SplineError(Exception):
    """Base class for all kbspline errors."""


class InvalidEditError(SplineError):
    """A structural edit that the current path cannot accept.

    Raised when deleting the first (or only) control point, inserting into a
    path with fewer than two control points, or re-timing the first point.
    """


class TimeOrderError(InvalidEditError, ValueError):
    """A requested time falls outside the open interval allowed for it."""


class PathLoadError(SplineError):
    """A path document could not be read, decoded or validated."""


class PathSaveError(SplineError):
    """A path document could not be written."""


class StalePathError(SplineError):
    """A path generator was used after a structural edit of its spline."""
