import random

import pytest

from quilt.components.tile import Rect, SplitDirection, TileRole
from quilt.constants import MIN_TILE_SIZE
from quilt.errors import NotSplittable
from quilt.systems.split_ops import (
    can_split,
    choose_direction,
    is_terminal,
    split_offset,
    split_tile,
    valid_directions,
)
from quilt.utils.color_math import Color
from tests.helpers import make_tile


def test_valid_directions_follow_the_minimum_size():
    assert valid_directions(make_tile("a", "#ff0000", 0, 0, 1000, 1000)) == (
        SplitDirection.HORIZONTAL,
        SplitDirection.VERTICAL,
    )
    assert valid_directions(make_tile("b", "#ff0000", 0, 0, 80, 80)) == (
        SplitDirection.HORIZONTAL,
        SplitDirection.VERTICAL,
    )
    # too narrow to cut the width, tall enough to cut the height
    narrow = make_tile("c", "#ff0000", 0, 0, 79, 1000)
    assert valid_directions(narrow) == (SplitDirection.HORIZONTAL,)
    assert can_split(narrow, SplitDirection.HORIZONTAL)
    assert not can_split(narrow, SplitDirection.VERTICAL)

    small = make_tile("d", "#ff0000", 0, 0, 79, 79)
    assert valid_directions(small) == ()
    assert is_terminal(small)


def test_choose_direction_raises_for_terminal_tiles():
    with pytest.raises(NotSplittable):
        choose_direction(make_tile("a", "#ff0000", 0, 0, 40, 40), random.Random(0))


def test_choose_direction_returns_the_only_valid_direction():
    rng = random.Random(3)
    tall = make_tile("a", "#ff0000", 0, 0, 50, 1000)
    assert {choose_direction(tall, rng) for _ in range(50)} == {SplitDirection.HORIZONTAL}


def test_choose_direction_prefers_cutting_the_longer_edge():
    rng = random.Random(7)
    wide = make_tile("a", "#ff0000", 0, 0, 1000, 200)
    picks = [choose_direction(wide, rng) for _ in range(1000)]
    vertical_share = picks.count(SplitDirection.VERTICAL) / len(picks)
    assert 0.7 < vertical_share < 0.9

    tall = make_tile("b", "#ff0000", 0, 0, 200, 1000)
    picks = [choose_direction(tall, rng) for _ in range(1000)]
    horizontal_share = picks.count(SplitDirection.HORIZONTAL) / len(picks)
    assert 0.7 < horizontal_share < 0.9


@pytest.mark.parametrize("extent", [80, 81, 100, 133, 400, 1000])
def test_split_offset_keeps_both_halves_large_enough(extent):
    rng = random.Random(extent)
    for _ in range(200):
        offset = split_offset(extent, rng)
        assert offset == int(offset)
        assert offset >= MIN_TILE_SIZE
        assert extent - offset >= MIN_TILE_SIZE


def test_split_offset_stays_in_the_ratio_band_for_large_extents():
    rng = random.Random(11)
    offsets = [split_offset(1000, rng) for _ in range(500)]
    assert min(offsets) >= 300
    assert max(offsets) <= 700


def test_horizontal_split_stacks_the_halves():
    parent = make_tile("parent", "#f7b733", 0, 0, 1000, 1000, contributor_id="alice", color_family="orange")
    parent.submission_index = 4

    kept, added = split_tile(parent, Color(255, 0, 0), SplitDirection.HORIZONTAL, "bob", 9, random.Random(1))

    assert kept.rect.x == 0 and kept.rect.y == 0 and kept.rect.width == 1000
    assert added.rect.x == 0 and added.rect.y == kept.rect.height and added.rect.width == 1000
    assert kept.rect.height + added.rect.height == 1000
    assert kept.color == parent.color
    assert added.color == Color(255, 0, 0)
    assert (kept.contributor_id, kept.submission_index) == ("alice", 4)
    assert (added.contributor_id, added.submission_index) == ("bob", 9)
    assert kept.parent_id == added.parent_id == "parent"
    assert kept.color_family == added.color_family == "orange"
    assert kept.role is added.role is TileRole.KEY
    assert len({kept.id, added.id, parent.id}) == 3


def test_vertical_split_places_the_halves_side_by_side():
    parent = make_tile("parent", "#f7b733", 100, 200, 300, 120, role=TileRole.BORDER)

    kept, added = split_tile(parent, Color(0, 0, 255), SplitDirection.VERTICAL, "bob", 2, random.Random(5))

    assert kept.rect.x == 100 and kept.rect.y == 200 and kept.rect.height == 120
    assert added.rect.x == 100 + kept.rect.width and added.rect.y == 200 and added.rect.height == 120
    assert kept.rect.width + added.rect.width == 300
    assert kept.role is added.role is TileRole.BORDER


def test_split_leaves_the_parent_untouched():
    parent = make_tile("parent", "#f7b733", 0, 0, 1000, 1000)
    split_tile(parent, Color(0, 0, 255), SplitDirection.VERTICAL, "bob", 1, random.Random(0))
    assert parent.rect == Rect(0, 0, 1000, 1000)
    assert parent.color == Color.parse("#f7b733")


def test_split_along_a_short_axis_raises():
    parent = make_tile("parent", "#f7b733", 0, 0, 60, 1000)
    with pytest.raises(NotSplittable):
        split_tile(parent, Color(0, 0, 255), SplitDirection.VERTICAL, "bob", 1, random.Random(0))
