"""
Loads jobs from YAML descriptions.

Example:

    title: badge
    start: [10.0, 5.0]          # mm, optional
    parts:
      - type: vector
        resolution: 500
        property: {power: 80, speed: 30}
        commands:
          - [move, 0, 0]
          - [line, 500, 0]
          - [property, {power: 40, speed: 30}]
          - [line, 500, 500]
      - type: raster
        resolution: 500
        start: [0, 600]         # px
        property: {power: 60, speed: 100}
        rows:
          - "..##.."
          - ".#..#."
      - type: raster3d
        resolution: 500
        start: [0, 700]
        property: {power: 100, speed: 80, focus: 0.0}
        rows:
          - [0, 128, 255, 0]
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Union
import numpy as np
import yaml
from .job import (
    Job,
    JobPart,
    LaserProperty,
    Point,
    PowerSpeedFocusFrequencyProperty,
    PowerSpeedFocusProperty,
    PowerSpeedProperty,
    Raster3dPart,
    RasterPart,
    VectorPart,
)


logger = logging.getLogger(__name__)

# Characters that mark an engraved pixel in bilevel row strings
BLACK_CHARS = "#Xx1*"


class JobFileError(ValueError):
    """The job description is malformed."""

    pass


def parse_property(data: Dict[str, Any]) -> LaserProperty:
    try:
        power = int(data["power"])
        speed = int(data["speed"])
    except (KeyError, TypeError, ValueError) as e:
        raise JobFileError(f"Invalid laser property {data!r}") from e
    try:
        if "frequency" in data:
            return PowerSpeedFocusFrequencyProperty(
                power,
                speed,
                focus=float(data.get("focus", 0.0)),
                frequency=int(data["frequency"]),
            )
        if "focus" in data:
            return PowerSpeedFocusProperty(
                power, speed, focus=float(data["focus"])
            )
        return PowerSpeedProperty(power, speed)
    except ValueError as e:
        raise JobFileError(str(e)) from e


def _parse_vector(data: Dict[str, Any]) -> VectorPart:
    part = VectorPart(parse_property(data["property"]), data["resolution"])
    for cmd in data.get("commands", []):
        match cmd:
            case ["move", x, y]:
                part.move_to(x, y)
            case ["line", x, y]:
                part.line_to(x, y)
            case ["property", dict() as prop]:
                part.set_property(parse_property(prop))
            case _:
                raise JobFileError(f"Invalid vector command {cmd!r}")
    return part


def _parse_bilevel_rows(rows: List[Union[str, List[int]]]) -> np.ndarray:
    parsed = []
    for row in rows:
        if isinstance(row, str):
            parsed.append([c in BLACK_CHARS for c in row])
        else:
            parsed.append([bool(v) for v in row])
    return _to_array(parsed, bool)


def _to_array(rows: List[List[Any]], dtype) -> np.ndarray:
    if len({len(r) for r in rows}) > 1:
        raise JobFileError("All raster rows must have the same length")
    if not rows:
        return np.zeros((0, 0), dtype=dtype)
    return np.array(rows, dtype=dtype)


def _parse_raster(data: Dict[str, Any]) -> JobPart:
    x, y = data.get("start", (0, 0))
    start = Point(int(x), int(y))
    prop = parse_property(data["property"])
    rows = data.get("rows", [])
    if data["type"] == "raster":
        return RasterPart(
            _parse_bilevel_rows(rows), start, prop, data["resolution"]
        )
    try:
        return Raster3dPart(
            _to_array(rows, np.int64), start, prop, data["resolution"]
        )
    except ValueError as e:
        raise JobFileError(str(e)) from e


def parse_job(data: Dict[str, Any]) -> Job:
    if not isinstance(data, dict):
        raise JobFileError("A job description must be a mapping")
    start_x, start_y = data.get("start", (0.0, 0.0))
    job = Job(
        title=str(data.get("title", "job")),
        start_x=float(start_x),
        start_y=float(start_y),
    )
    for index, part_data in enumerate(data.get("parts", [])):
        try:
            kind = part_data["type"]
            if kind == "vector":
                part = _parse_vector(part_data)
            elif kind in ("raster", "raster3d"):
                part = _parse_raster(part_data)
            else:
                raise JobFileError(f"Unknown part type '{kind}'")
        except KeyError as e:
            raise JobFileError(
                f"Part {index} is missing the {e} entry"
            ) from e
        job.add_part(part)
    logger.debug(f"Parsed job '{job.title}' with {len(job.parts)} parts")
    return job


def load_job(path: Path) -> Job:
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise JobFileError(f"{path}: {e}") from e
    return parse_job(data)
