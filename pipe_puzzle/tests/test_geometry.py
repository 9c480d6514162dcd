import pytest

from pipe_puzzle.geometry import (
    CARDINALS,
    DIRECTION_POINTS,
    Direction,
    Point,
    arm_curve,
    bezier_point,
    directions_to_mask,
    lerp_point,
    mask_to_directions,
)


@pytest.mark.parametrize("direction", list(Direction))
def test_opposite_is_an_involution(direction: Direction):
    assert direction.opposite().opposite() is direction


def test_offsets_and_bits():
    assert Direction.UP.offset == (0, -1)
    assert Direction.DOWN.offset == (0, 1)
    assert Direction.LEFT.offset == (-1, 0)
    assert Direction.RIGHT.offset == (1, 0)
    assert Direction.NONE.offset == (0, 0)
    assert [d.bit for d in CARDINALS] == [8, 4, 2, 1]
    assert Direction.NONE.bit == 0


def test_opposite_offsets_cancel():
    for direction in CARDINALS:
        dx, dy = direction.offset
        ox, oy = direction.opposite().offset
        assert (dx + ox, dy + oy) == (0, 0)


def test_masks_translate_to_directions():
    assert mask_to_directions(0xA) == [Direction.LEFT, Direction.UP]
    assert directions_to_mask([Direction.RIGHT, Direction.DOWN]) == 5
    for mask in range(16):
        assert directions_to_mask(mask_to_directions(mask)) == mask


def test_point_helpers():
    assert lerp_point(Point(0, 0), Point(1, 2), 0.5) == Point(0.5, 1.0)
    p0, p1, p2 = Point(0, 0.5), Point(0.5, 0.5), Point(0.5, 0)
    assert bezier_point(0.0, p0, p1, p2) == p0
    assert bezier_point(1.0, p0, p1, p2) == p2
    assert Point(0.5, 1.0).scaled(40) == (20.0, 40.0)


def test_arm_curve_runs_between_anchors():
    straight = arm_curve(Direction.LEFT, Direction.RIGHT, samples=4)
    assert straight[0] == DIRECTION_POINTS[Direction.LEFT]
    assert straight[-1] == DIRECTION_POINTS[Direction.RIGHT]
    assert all(point.y == 0.5 for point in straight)

    bend = arm_curve(Direction.LEFT, Direction.DOWN, samples=4)
    assert len(bend) == 5
    assert bend[0] == DIRECTION_POINTS[Direction.LEFT]
    assert bend[-1] == DIRECTION_POINTS[Direction.DOWN]
