from __future__ import annotations

import math
import random
from typing import Tuple

from quilt.components.tile import Rect, SplitDirection, Tile
from quilt.constants import (
    MIN_TILE_SIZE,
    PREFERRED_DIRECTION_WEIGHT,
    SPLIT_RATIO_MAX,
    SPLIT_RATIO_MIN,
)
from quilt.errors import NotSplittable
from quilt.systems.tile_ops import new_tile_id
from quilt.utils.color_math import Color


def cut_extent(tile: Tile, direction: SplitDirection) -> float:
    """Length of the side a cut in this direction divides."""
    if direction is SplitDirection.HORIZONTAL:
        return tile.rect.height
    return tile.rect.width


def can_split(tile: Tile, direction: SplitDirection) -> bool:
    return cut_extent(tile, direction) >= MIN_TILE_SIZE * 2


def valid_directions(tile: Tile) -> Tuple[SplitDirection, ...]:
    return tuple(d for d in (SplitDirection.HORIZONTAL, SplitDirection.VERTICAL) if can_split(tile, d))


def is_terminal(tile: Tile) -> bool:
    return not valid_directions(tile)


def choose_direction(tile: Tile, rng: random.Random) -> SplitDirection:
    """Pick a cut direction, favouring a cut across the longer edge."""
    directions = valid_directions(tile)
    if not directions:
        raise NotSplittable(f"Tile {tile.id} cannot be split in any direction")
    if len(directions) == 1:
        return directions[0]
    preferred = SplitDirection.VERTICAL if tile.rect.width > tile.rect.height else SplitDirection.HORIZONTAL
    if rng.random() < PREFERRED_DIRECTION_WEIGHT:
        return preferred
    return SplitDirection.HORIZONTAL if preferred is SplitDirection.VERTICAL else SplitDirection.VERTICAL


def split_offset(extent: float, rng: random.Random) -> float:
    """Distance from the tile origin to the cut line.

    Drawn from the 30%-70% band of extent, narrowed so both halves keep
    MIN_TILE_SIZE, and snapped to whole canvas units.
    """
    low = max(extent * SPLIT_RATIO_MIN, MIN_TILE_SIZE)
    high = min(extent * SPLIT_RATIO_MAX, extent - MIN_TILE_SIZE)
    low_unit = math.ceil(low)
    high_unit = math.floor(high)
    if low_unit > high_unit:
        return (low + high) / 2
    offset = round(rng.uniform(low_unit, high_unit))
    return float(min(max(offset, low_unit), high_unit))


def split_tile(
    tile: Tile,
    new_color: Color,
    direction: SplitDirection,
    contributor_id: str | None,
    submission_index: int,
    rng: random.Random,
) -> Tuple[Tile, Tile]:
    """Divide tile into (kept, added) halves; tile itself is left untouched.

    The kept half holds the parent's color, role and attribution at the top
    (horizontal) or left (vertical). The added half carries the new color and
    contribution. Both point back at tile and keep its family label.
    """
    if not can_split(tile, direction):
        raise NotSplittable(f"Cannot split tile {tile.id} {direction.value}ly: extent {cut_extent(tile, direction)}")
    rect = tile.rect
    offset = split_offset(cut_extent(tile, direction), rng)
    if direction is SplitDirection.HORIZONTAL:
        kept_rect = Rect(rect.x, rect.y, rect.width, offset)
        added_rect = Rect(rect.x, rect.y + offset, rect.width, rect.height - offset)
    else:
        kept_rect = Rect(rect.x, rect.y, offset, rect.height)
        added_rect = Rect(rect.x + offset, rect.y, rect.width - offset, rect.height)

    kept = Tile(
        id=new_tile_id(rng),
        color=tile.color,
        rect=kept_rect,
        role=tile.role,
        parent_id=tile.id,
        contributor_id=tile.contributor_id,
        submission_index=tile.submission_index,
        color_family=tile.color_family,
    )
    added = Tile(
        id=new_tile_id(rng),
        color=new_color,
        rect=added_rect,
        role=tile.role,
        parent_id=tile.id,
        contributor_id=contributor_id,
        submission_index=submission_index,
        color_family=tile.color_family,
    )
    return kept, added
