import dataclasses
import numpy as np
import pytest
from raystream.core.job import (
    Job,
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


def test_point_is_immutable():
    p = Point(1, 2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.x = 5  # type: ignore[misc]
    q = p.translated(3, -1)
    assert q == Point(4, 1)
    assert p == Point(1, 2)


def test_property_variants_share_power_and_speed():
    props = [
        PowerSpeedProperty(50, 20),
        PowerSpeedFocusProperty(50, 20, focus=1.5),
        PowerSpeedFocusFrequencyProperty(50, 20, focus=0, frequency=1000),
    ]
    for prop in props:
        assert prop.power == 50
        assert prop.speed == 20


@pytest.mark.parametrize("power,speed", [(-1, 50), (101, 50), (50, 101)])
def test_property_rejects_out_of_range(power, speed):
    with pytest.raises(ValueError):
        PowerSpeedProperty(power, speed)


def test_vector_part_starts_with_initial_property():
    prop = PowerSpeedProperty(80, 50)
    part = VectorPart(prop, 500)
    part.move_to(0, 0)
    part.line_to(10, 20)
    assert part.commands == [SetProperty(prop), MoveTo(0, 0), LineTo(10, 20)]
    assert part.bbox() == (0, 0, 10, 20)


def test_vector_part_without_motion_has_no_bbox():
    assert VectorPart(PowerSpeedProperty(), 500).bbox() is None


def test_raster_part_reads_pixels():
    image = np.array([[0, 1, 1], [1, 0, 0]])
    part = RasterPart(image, Point(5, 5), PowerSpeedProperty(), 500)
    assert part.raster_width == 3
    assert part.raster_height == 2
    assert part.is_black(1, 0)
    assert not part.is_black(0, 0)
    assert part.is_black(0, 1)
    assert part.bbox() == (5, 5, 7, 6)


def test_raster3d_part_returns_int_lines():
    image = np.array([[0, 128, 255]])
    part = Raster3dPart(image, Point(0, 0), PowerSpeedProperty(), 500)
    assert part.get_raster_line(0) == [0, 128, 255]


def test_raster3d_rejects_out_of_range_samples():
    with pytest.raises(ValueError):
        Raster3dPart(
            np.array([[0, 300]]), Point(0, 0), PowerSpeedProperty(), 500
        )


def test_raster_requires_2d_image():
    with pytest.raises(ValueError):
        RasterPart(np.zeros(4), Point(0, 0), PowerSpeedProperty(), 500)


def test_apply_start_point_translates_parts():
    vector = VectorPart(PowerSpeedProperty(), 500)
    vector.move_to(1000, 1000)
    raster = RasterPart(
        np.ones((1, 2)), Point(600, 700), PowerSpeedProperty(), 500
    )
    # 25.4mm is 500px at 500 DPI
    job = Job(parts=[vector, raster], start_x=25.4, start_y=25.4)

    job.apply_start_point()

    assert vector.commands[1] == MoveTo(500, 500)
    assert raster.raster_start == Point(100, 200)
    assert job.start_x == 0
    assert job.start_y == 0


def test_apply_start_point_at_origin_is_noop():
    vector = VectorPart(PowerSpeedProperty(), 500)
    vector.move_to(3, 4)
    job = Job(parts=[vector])
    job.apply_start_point()
    assert vector.commands[1] == MoveTo(3, 4)
