from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from esper import World

from quilt.components.tile import Tile, TileRole
from quilt.errors import NoEligibleTile
from quilt.systems.border_growth import BorderGrowth, grow_border
from quilt.systems.split_ops import is_terminal
from quilt.systems.tile_ops import get_quilt_state, live_tiles
from quilt.utils.color_math import Color, color_distance, family_label, is_similar, is_similar_to_any

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Selection:
    """Outcome of target selection.

    growth is set when no border tile could be split and the canvas grew
    instead; tile is then the new border tile and must not be split again.
    """
    tile: Tile
    growth: Optional[BorderGrowth] = None

    @property
    def grown(self) -> bool:
        return self.growth is not None


def splittable(tiles: Sequence[Tile]) -> List[Tile]:
    return [tile for tile in tiles if not is_terminal(tile)]


def closest_to(color: Color, tiles: Sequence[Tile]) -> Tile:
    """Tile whose color is nearest to color; the first one wins ties."""
    best = tiles[0]
    best_distance = color_distance(color, best.color)
    for tile in tiles[1:]:
        distance = color_distance(color, tile.color)
        if distance < best_distance:
            best = tile
            best_distance = distance
    return best


def largest(tiles: Sequence[Tile]) -> Tile:
    best = tiles[0]
    for tile in tiles[1:]:
        if tile.area > best.area:
            best = tile
    return best


def select_random_tile(tiles: Sequence[Tile], rng: random.Random) -> Tile:
    candidates = splittable(tiles)
    if not candidates:
        raise NoEligibleTile("No tile is large enough to split")
    return rng.choice(candidates)


def find_key_tile(color: Color, tiles: Sequence[Tile]) -> Tile | None:
    """Closest splittable KEY tile in the color's own family, if any."""
    family = family_label(color)
    candidates = splittable(
        [tile for tile in tiles if tile.role is TileRole.KEY and tile.color_family == family]
    )
    if not candidates:
        return None
    return closest_to(color, candidates)


def select_border_tile(
    world: World,
    color: Color,
    tiles: Sequence[Tile],
    contributor_id: str | None,
    submission_index: int,
    rng: random.Random,
) -> Selection:
    borders = splittable([tile for tile in tiles if tile.role is TileRole.BORDER])
    if not borders:
        growth = grow_border(world, color, contributor_id, submission_index, rng)
        return Selection(tile=growth.tile, growth=growth)
    similar = [tile for tile in borders if is_similar(color, tile.color)]
    if similar:
        return Selection(tile=closest_to(color, similar))
    return Selection(tile=largest(borders))


def select_target(
    world: World,
    color: Color,
    contributor_id: str | None,
    submission_index: int,
    rng: random.Random,
) -> Selection:
    """Decide which live tile hosts the next contribution.

    Before the freeze any splittable tile is picked at random. Afterwards a
    color close to the frozen palette goes to the nearest key tile of its
    family; everything else lands on the border, growing it if needed.
    """
    state = get_quilt_state(world)
    tiles = live_tiles(world)
    if not state.frozen:
        return Selection(tile=select_random_tile(tiles, rng))

    if is_similar_to_any(color, state.frozen_colors):
        key_tile = find_key_tile(color, tiles)
        if key_tile is not None:
            return Selection(tile=key_tile)
        logger.debug("No splittable %s key tile for %s, using the border", family_label(color), color.hex)
    return select_border_tile(world, color, tiles, contributor_id, submission_index, rng)
