import pytest
from raystream.core.job import (
    LineTo,
    MoveTo,
    Point,
    PowerSpeedFocusFrequencyProperty,
    PowerSpeedFocusProperty,
    PowerSpeedProperty,
    Raster3dPart,
    RasterPart,
    SetProperty,
    VectorPart,
)
from raystream.core.jobfile import (
    JobFileError,
    load_job,
    parse_job,
    parse_property,
)


JOB_YAML = """
title: badge
start: [1.0, 2.0]
parts:
  - type: vector
    resolution: 500
    property: {power: 80, speed: 30}
    commands:
      - [move, 0, 0]
      - [line, 500, 0]
      - [property, {power: 40, speed: 30}]
  - type: raster
    resolution: 500
    start: [0, 600]
    property: {power: 60, speed: 100}
    rows:
      - "..##.."
      - ".#..#."
  - type: raster3d
    resolution: 500
    start: [0, 700]
    property: {power: 100, speed: 80, focus: 0.5}
    rows:
      - [0, 128, 255, 0]
"""


def test_load_job_from_file(tmp_path):
    path = tmp_path / "job.yaml"
    path.write_text(JOB_YAML)

    job = load_job(path)

    assert job.title == "badge"
    assert (job.start_x, job.start_y) == (1.0, 2.0)
    vector, raster, raster3d = job.parts

    assert isinstance(vector, VectorPart)
    assert vector.commands == [
        SetProperty(PowerSpeedProperty(80, 30)),
        MoveTo(0, 0),
        LineTo(500, 0),
        SetProperty(PowerSpeedProperty(40, 30)),
    ]

    assert isinstance(raster, RasterPart)
    assert raster.raster_start == Point(0, 600)
    assert raster.raster_width == 6
    assert raster.is_black(2, 0) and raster.is_black(3, 0)
    assert not raster.is_black(0, 0)
    assert raster.is_black(1, 1) and raster.is_black(4, 1)

    assert isinstance(raster3d, Raster3dPart)
    assert raster3d.get_raster_line(0) == [0, 128, 255, 0]
    assert raster3d.laser_property == PowerSpeedFocusProperty(
        100, 80, focus=0.5
    )


def test_parse_property_picks_variant():
    assert parse_property({"power": 1, "speed": 2}) == PowerSpeedProperty(
        1, 2
    )
    prop = parse_property(
        {"power": 1, "speed": 2, "focus": 1, "frequency": 500}
    )
    assert isinstance(prop, PowerSpeedFocusFrequencyProperty)
    assert prop.frequency == 500


@pytest.mark.parametrize(
    "data",
    [
        {"power": 10},
        {"power": "x", "speed": 1},
        {"power": 150, "speed": 1},
    ],
)
def test_parse_property_errors(data):
    with pytest.raises(JobFileError):
        parse_property(data)


def test_unknown_part_type():
    with pytest.raises(JobFileError, match="Unknown part type"):
        parse_job({"parts": [{"type": "hologram"}]})


def test_missing_part_entry():
    with pytest.raises(JobFileError, match="missing"):
        parse_job({"parts": [{"type": "vector", "resolution": 500}]})


def test_invalid_vector_command():
    with pytest.raises(JobFileError, match="Invalid vector command"):
        parse_job(
            {
                "parts": [
                    {
                        "type": "vector",
                        "resolution": 500,
                        "property": {"power": 1, "speed": 1},
                        "commands": [["arc", 1, 2, 3]],
                    }
                ]
            }
        )


def test_ragged_raster_rows():
    with pytest.raises(JobFileError, match="same length"):
        parse_job(
            {
                "parts": [
                    {
                        "type": "raster",
                        "resolution": 500,
                        "property": {"power": 1, "speed": 1},
                        "rows": ["##", "#"],
                    }
                ]
            }
        )


def test_job_must_be_mapping():
    with pytest.raises(JobFileError):
        parse_job(["not", "a", "job"])  # type: ignore[arg-type]
