import random

import pytest

from quilt.components.quilt_state import QuiltPhase
from quilt.components.tile import TileRole
from quilt.errors import NoEligibleTile
from quilt.systems.selection import closest_to, find_key_tile, largest, select_target
from quilt.systems.tile_ops import live_tiles
from quilt.utils.color_math import Color
from tests.helpers import make_tile, world_with_tiles


def _frozen_world(extra_tiles=()):
    tiles = [
        make_tile("red", "#ff0000", 0, 0, 400, 1000, color_family="red"),
        make_tile("dark_red", "#c80000", 400, 0, 300, 1000, color_family="red"),
        make_tile("blue", "#0000ff", 700, 0, 300, 1000, color_family="blue"),
        *extra_tiles,
    ]
    return world_with_tiles(
        tiles,
        phase=QuiltPhase.POST_FREEZE,
        frozen_colors=["#ff0000", "#c80000", "#0000ff"],
        submission_count=20,
    )


def test_pre_freeze_picks_only_splittable_tiles():
    tiles = [
        make_tile("small", "#ff0000", 0, 0, 40, 40),
        make_tile("big", "#00ff00", 40, 0, 500, 500),
    ]
    world = world_with_tiles(tiles)
    for seed in range(30):
        selection = select_target(world, Color(0, 0, 255), "bob", 1, random.Random(seed))
        assert selection.tile.id == "big"
        assert not selection.grown


def test_pre_freeze_spreads_over_all_splittable_tiles():
    tiles = [make_tile(f"t{i}", "#ff0000", i * 100, 0, 100, 100) for i in range(4)]
    world = world_with_tiles(tiles)
    rng = random.Random(0)
    picked = {select_target(world, Color(0, 0, 255), "bob", 1, rng).tile.id for _ in range(200)}
    assert picked == {"t0", "t1", "t2", "t3"}


def test_pre_freeze_without_splittable_tiles_raises():
    world = world_with_tiles([make_tile("small", "#ff0000", 0, 0, 60, 60)])
    with pytest.raises(NoEligibleTile):
        select_target(world, Color(0, 0, 255), "bob", 1, random.Random(0))


def test_post_freeze_similar_color_goes_to_the_closest_key_tile_of_its_family():
    world = _frozen_world()

    selection = select_target(world, Color(205, 3, 3), "bob", 21, random.Random(0))

    assert selection.tile.id == "dark_red"
    assert not selection.grown


def test_post_freeze_similar_color_without_a_splittable_family_tile_uses_the_border():
    tiles = [
        make_tile("red", "#ff0000", 0, 0, 60, 60, color_family="red"),
        make_tile("blue", "#0000ff", 60, 0, 940, 1000, color_family="blue"),
    ]
    world = world_with_tiles(
        tiles, phase=QuiltPhase.POST_FREEZE, frozen_colors=["#ff0000", "#0000ff"], submission_count=20
    )

    selection = select_target(world, Color(250, 5, 5), "bob", 21, random.Random(0))

    assert selection.grown
    assert selection.tile.role is TileRole.BORDER


def test_border_selection_prefers_a_similar_border_tile():
    borders = [
        make_tile("green", "#00ff00", 0, 1000, 1000, 40, role=TileRole.BORDER),
        make_tile("gray", "#808080", 0, 1040, 1000, 80, role=TileRole.BORDER),
    ]
    world = _frozen_world(borders)

    selection = select_target(world, Color(5, 250, 5), "bob", 21, random.Random(0))

    assert selection.tile.id == "green"


def test_border_selection_falls_back_to_the_largest_border_tile():
    borders = [
        make_tile("green", "#00ff00", 0, 1000, 1000, 40, role=TileRole.BORDER),
        make_tile("gray", "#808080", 0, 1040, 1000, 80, role=TileRole.BORDER),
    ]
    world = _frozen_world(borders)

    selection = select_target(world, Color(255, 255, 255), "bob", 21, random.Random(0))

    assert selection.tile.id == "gray"


def test_border_selection_grows_the_canvas_when_no_border_tile_can_split():
    borders = [make_tile("stub", "#00ff00", 0, 1000, 60, 40, role=TileRole.BORDER)]
    world = _frozen_world(borders)
    before = len(live_tiles(world))

    selection = select_target(world, Color(0, 255, 0), "bob", 21, random.Random(0))

    assert selection.grown
    assert selection.tile.id != "stub"
    assert selection.tile.contributor_id == "bob"
    assert selection.tile.submission_index == 21
    assert len(live_tiles(world)) == before + 1
    assert live_tiles(world)[-1] is selection.tile


def test_find_key_tile_ignores_other_families_and_border_tiles():
    tiles = [
        make_tile("border_red", "#ff0000", 0, 0, 500, 500, role=TileRole.BORDER, color_family="red"),
        make_tile("blue", "#0000ff", 500, 0, 500, 500, color_family="blue"),
    ]
    assert find_key_tile(Color(250, 5, 5), tiles) is None


def test_ties_resolve_to_the_first_tile():
    a = make_tile("a", "#ff0000", 0, 0, 100, 100)
    b = make_tile("b", "#ff0000", 100, 0, 100, 100)
    assert closest_to(Color(0, 0, 0), [a, b]) is a
    assert largest([a, b]) is a
