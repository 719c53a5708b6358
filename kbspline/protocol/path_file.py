"""
Path file format.

Paths are stored as JSON documents:

    {
      "title": "...", "description": "...", "speedMultiplier": 1.0,
      "controlPoints": [
        {"fieldX": 0.0, "fieldY": 0.0, "fieldHeading": 0.0, "time": 0.0,
         "derivativesEdited": false, "field_dX": 0.0, "field_dY": 0.0,
         "field_dHeading": 0.0,
         "robotActionCommand": "...", "robotActionDuration": 0.0},
        ...
      ],
      "robotScheduledActions": [
        {"robotScheduledActionTime": 0.0, "robotActionCommand": "..."}, ...
      ]
    }

Missing optional keys take the defaults below; ``controlPoints`` is required.
The two robotAction keys of a control point are written only when the point
carries a halt-and-run action. A value of the wrong type, a first control
point not at the start time, or control-point times that do not strictly
increase, fail the decode.
"""

import logging
import os
from typing import Annotated

import msgspec
from msgspec import UNSET, UnsetType

from kbspline.config import (
    DEFAULT_DESCRIPTION,
    DEFAULT_SPEED_MULTIPLIER,
    DEFAULT_TITLE,
    START_TIME,
)
from kbspline.utils.errors import PathLoadError, PathSaveError

logger = logging.getLogger(__name__)


class ControlPointRecord(msgspec.Struct, kw_only=True):
    """One control point; headings in radians, rates per second."""

    x: float = msgspec.field(default=0.0, name="fieldX")
    y: float = msgspec.field(default=0.0, name="fieldY")
    heading: float = msgspec.field(default=0.0, name="fieldHeading")
    time: float = 0.0
    derivatives_edited: bool = msgspec.field(default=False, name="derivativesEdited")
    dx: float = msgspec.field(default=0.0, name="field_dX")
    dy: float = msgspec.field(default=0.0, name="field_dY")
    dheading: float = msgspec.field(default=0.0, name="field_dHeading")
    action_command: str | None | UnsetType = msgspec.field(
        default=UNSET, name="robotActionCommand"
    )
    action_duration: float | UnsetType = msgspec.field(
        default=UNSET, name="robotActionDuration"
    )

    @property
    def command(self) -> str | None:
        """The halt-and-run command, None when the point has no action."""
        if self.action_command is UNSET:
            return None
        return self.action_command  # type: ignore[return-value]

    @property
    def duration(self) -> float:
        if self.action_duration is UNSET:
            return 0.0
        return self.action_duration  # type: ignore[return-value]


class ScheduledActionRecord(msgspec.Struct, kw_only=True):
    """A command started at a path time without stopping."""

    path_time: float = msgspec.field(default=0.0, name="robotScheduledActionTime")
    command: str = msgspec.field(default="", name="robotActionCommand")


class PathDocument(msgspec.Struct, kw_only=True):
    """A complete saved path."""

    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    speed_multiplier: Annotated[float, msgspec.Meta(gt=0.0)] = msgspec.field(
        default=DEFAULT_SPEED_MULTIPLIER, name="speedMultiplier"
    )
    control_points: list[ControlPointRecord] = msgspec.field(name="controlPoints")
    scheduled_actions: list[ScheduledActionRecord] = msgspec.field(
        default_factory=list, name="robotScheduledActions"
    )

    def __post_init__(self) -> None:
        times = [record.time for record in self.control_points]
        if times and times[0] != START_TIME:
            raise ValueError(
                f"the first control point time ({times[0]}) must be {START_TIME}"
            )
        for i in range(1, len(times)):
            if times[i] <= times[i - 1]:
                raise ValueError(
                    f"control point {i} time ({times[i]}) must be greater than "
                    f"the previous control point time ({times[i - 1]})"
                )


_decoder = msgspec.json.Decoder(PathDocument)
_encoder = msgspec.json.Encoder()


def decode_path(data: bytes | str) -> PathDocument:
    """Decode a JSON path document.

    Raises:
        PathLoadError: The data is not JSON, is missing ``controlPoints``, has a
            value of the wrong type, or has out-of-order control-point times.
    """
    try:
        return _decoder.decode(data)
    except msgspec.ValidationError as e:
        raise PathLoadError(f"Invalid path document: {e}") from e
    except msgspec.DecodeError as e:
        raise PathLoadError(f"Malformed path JSON: {e}") from e


def encode_path(document: PathDocument, indent: int = 2) -> bytes:
    """Encode a path document as JSON, pretty-printed with ``indent`` spaces."""
    data = _encoder.encode(document)
    if indent > 0:
        data = msgspec.json.format(data, indent=indent)
    return data


def read_path_file(path: str | os.PathLike[str]) -> PathDocument:
    """Read and decode a path file.

    Raises:
        PathLoadError: The file cannot be read or does not hold a valid path.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise PathLoadError(f"Cannot read path file {os.fspath(path)!r}: {e}") from e
    document = decode_path(data)
    logger.info(
        "Read path '%s' from %s (%d control points)",
        document.title,
        os.fspath(path),
        len(document.control_points),
    )
    return document


def write_path_file(path: str | os.PathLike[str], document: PathDocument) -> None:
    """Encode and write a path file.

    Raises:
        PathSaveError: The file cannot be written.
    """
    data = encode_path(document)
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise PathSaveError(f"Cannot write path file {os.fspath(path)!r}: {e}") from e
    logger.info(
        "Wrote path '%s' to %s (%d control points)",
        document.title,
        os.fspath(path),
        len(document.control_points),
    )
