from __future__ import annotations

import random
from typing import Sequence

from esper import World

from quilt.components.quilt_state import QuiltPhase
from quilt.components.tile import Rect, Tile, TileRole
from quilt.constants import MIN_TILE_SIZE
from quilt.engine import QuiltEngine
from quilt.events.bus import EventBus
from quilt.systems.tile_ops import add_tile, canvas_bounds, clear_tiles, get_quilt_state
from quilt.utils.color_math import Color
from quilt.world import create_world

# Pairwise far apart (>= 127) and far from the seed color, so no two land in one family group.
PALETTE = [
    "#ff0000", "#00ff00", "#0000ff", "#ffff00", "#00ffff", "#ff00ff", "#ffffff",
    "#808080", "#800000", "#008000", "#000080", "#808000", "#008080", "#800080",
    "#ff8000", "#0080ff", "#80ff00", "#ff0080", "#8000ff",
]


def make_engine(seed: int = 0, **world_kwargs) -> tuple[World, EventBus, QuiltEngine]:
    """World + bus + engine sharing one seeded RNG."""

    bus = EventBus()
    world = create_world(rng=random.Random(seed), **world_kwargs)
    return world, bus, QuiltEngine(world, bus)


def make_tile(
    tile_id: str,
    color: str,
    x: float,
    y: float,
    width: float,
    height: float,
    role: TileRole = TileRole.KEY,
    color_family: str | None = None,
    parent_id: str | None = None,
    contributor_id: str | None = None,
) -> Tile:
    return Tile(
        id=tile_id,
        color=Color.parse(color),
        rect=Rect(x, y, width, height),
        role=role,
        parent_id=parent_id,
        contributor_id=contributor_id,
        color_family=color_family,
    )


def world_with_tiles(
    tiles: Sequence[Tile],
    *,
    phase: QuiltPhase = QuiltPhase.PRE_FREEZE,
    frozen_colors: Sequence[str] = (),
    submission_count: int = 0,
    seed: int = 0,
) -> World:
    """A world whose live tiles are exactly the given ones, bypassing repair."""

    world = create_world(rng=random.Random(seed))
    clear_tiles(world)
    for tile in tiles:
        add_tile(world, tile)
    state = get_quilt_state(world)
    state.phase = phase
    state.frozen_colors = [Color.parse(c) for c in frozen_colors]
    state.submission_count = submission_count
    return world


def assert_tiling(tiles: Sequence[Tile], sample_step: float | None = None) -> None:
    """Tiles cover their bounding box exactly, without overlap, and respect the minimum size."""

    assert tiles, "at least one tile expected"
    bounds = canvas_bounds(tiles=tiles)
    for tile in tiles:
        assert tile.rect.width >= MIN_TILE_SIZE, tile
        assert tile.rect.height >= MIN_TILE_SIZE, tile
    total = sum(tile.area for tile in tiles)
    assert abs(total - bounds.area) < 1e-6, (total, bounds)
    for i, first in enumerate(tiles):
        for second in tiles[i + 1:]:
            overlap_x, overlap_y = first.rect.overlap(second.rect)
            assert overlap_x * overlap_y == 0, (first, second)

    if sample_step is None:
        return
    # Sample points sit on half units so they never fall on a tile edge.
    y = bounds.min_y + 2.5
    while y < bounds.max_y:
        x = bounds.min_x + 2.5
        while x < bounds.max_x:
            hits = sum(1 for tile in tiles if tile.rect.contains_point(x, y))
            assert hits == 1, (x, y, hits)
            x += sample_step
        y += sample_step
