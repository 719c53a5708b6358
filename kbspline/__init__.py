"""
kbspline Python Package

Smooth, time-parameterized paths for holonomic robots, built from sparse,
user-edited control points.

Key components:
- PathSpline: editable path of control points with automatic tangents
- PathIterator: fixed-interval samples for drawing and previews
- PathFollower: samples at control-loop times for path following
- HaltAndRun / ScheduleParallel: robot actions along the path
"""

from ._version import __version__
from .spline import (
    ControlPoint,
    GeneratorState,
    HaltAndRun,
    PathFollower,
    PathIterator,
    PathPoint,
    PathSpline,
    ScheduleParallel,
    TangentMode,
)
from .utils.errors import (
    InvalidEditError,
    PathLoadError,
    PathSaveError,
    SplineError,
    StalePathError,
    TimeOrderError,
)

__all__ = [
    "__version__",
    "PathSpline",
    "ControlPoint",
    "TangentMode",
    "PathPoint",
    "PathIterator",
    "PathFollower",
    "GeneratorState",
    "HaltAndRun",
    "ScheduleParallel",
    "SplineError",
    "InvalidEditError",
    "TimeOrderError",
    "PathLoadError",
    "PathSaveError",
    "StalePathError",
]
