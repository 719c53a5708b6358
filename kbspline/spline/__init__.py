"""
Spline engine: control points, automatic tangents, Hermite segment evaluation
and the generators that sample a path.
"""

from kbspline.spline.actions import (
    ActionSchedule,
    HaltAndRun,
    RobotAction,
    ScheduleParallel,
)
from kbspline.spline.control_point import ControlPoint, TangentMode
from kbspline.spline.generators import GeneratorState, PathFollower, PathIterator
from kbspline.spline.path import PathSpline
from kbspline.spline.segment import PathPoint

__all__ = [
    # Path and control points
    "PathSpline",
    "ControlPoint",
    "TangentMode",
    # Evaluation
    "PathPoint",
    "PathIterator",
    "PathFollower",
    "GeneratorState",
    # Actions
    "HaltAndRun",
    "ScheduleParallel",
    "RobotAction",
    "ActionSchedule",
]
