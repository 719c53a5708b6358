"""
Central configuration for kbspline tunables and shared constants.
"""

from __future__ import annotations

import logging
import os

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("KBSPLINE_TRACE", "0")).lower() in (
    "1",
    "true",
    "yes",
    "on",
)

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float, positive: bool = True) -> float:
    """Read a float tunable from the environment, falling back to ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if positive and value <= 0.0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


# -----------------------------------------------------------------------------
# Derivative engine
# -----------------------------------------------------------------------------

# Tension scales the auto-computed position tangent. Chosen so the default
# field path best represents the intent of the path planner.
DEFAULT_TENSION: float = _env_float("KBSPLINE_TENSION", 0.85)

# Tension for the auto-computed heading tangent.
DEFAULT_HEADING_TENSION: float = _env_float("KBSPLINE_HEADING_TENSION", 0.55)

# Chord or velocity lengths at or below this are treated as zero when
# manufacturing boundary tangents. A tunable, not a precision guarantee.
ZERO_TOLERANCE: float = _env_float("KBSPLINE_ZERO_TOLERANCE", 1e-5)

# -----------------------------------------------------------------------------
# Path timing
# -----------------------------------------------------------------------------

# Time of the first control point (seconds). Fixed for the life of a path.
START_TIME: float = 0.0

# Gap given to an appended control point when no later time is requested (s).
DEFAULT_SEGMENT_DURATION: float = 1.0

# Sample spacing for PathIterator (s). 20 samples/s works well for drawing
# paths in interactive planning tools.
DEFAULT_PATH_DELTA: float = _env_float("KBSPLINE_PATH_DELTA", 0.05)

DEFAULT_SPEED_MULTIPLIER: float = 1.0

# -----------------------------------------------------------------------------
# Editing handles
# -----------------------------------------------------------------------------

# Scale applied to the tangent when placing its editing handle.
DERIVATIVE_UI_SCALE: float = 0.5

# Distance of the heading editing handle from the control point (m).
HEADING_HANDLE_LENGTH: float = 1.0

# -----------------------------------------------------------------------------
# Metadata defaults
# -----------------------------------------------------------------------------

DEFAULT_TITLE: str = "untitled"
DEFAULT_DESCRIPTION: str = "No description provided."
