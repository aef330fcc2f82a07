from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from esper import World

from quilt.components.tile import Rect, Tile, TileRole
from quilt.constants import BORDER_MAX_THICKNESS, BORDER_THICKNESS_FRACTION, MIN_TILE_SIZE
from quilt.errors import NoEligibleTile
from quilt.systems.tile_ops import Bounds, add_tile, canvas_bounds, new_tile_id
from quilt.utils.color_math import Color

logger = logging.getLogger(__name__)

BORDER_SIDES = ("top", "right", "bottom", "left")


@dataclass(slots=True)
class BorderGrowth:
    tile: Tile
    side: str
    thickness: float


def border_thickness(bounds: Bounds) -> float:
    return min(BORDER_MAX_THICKNESS, BORDER_THICKNESS_FRACTION * min(bounds.width, bounds.height))


def border_rect(side: str, bounds: Bounds, thickness: float) -> Rect:
    """Strip of the given thickness laid flush outside one side of bounds."""
    if side == "top":
        return Rect(bounds.min_x, bounds.min_y - thickness, bounds.width, thickness)
    if side == "right":
        return Rect(bounds.max_x, bounds.min_y, thickness, bounds.height)
    if side == "bottom":
        return Rect(bounds.min_x, bounds.max_y, bounds.width, thickness)
    if side == "left":
        return Rect(bounds.min_x - thickness, bounds.min_y, thickness, bounds.height)
    raise ValueError(f"Unknown border side: {side}")


def grow_border(
    world: World,
    color: Color,
    contributor_id: str | None,
    submission_index: int,
    rng: random.Random,
) -> BorderGrowth:
    """Extend the canvas on a random side with a new BORDER tile and return it."""
    bounds = canvas_bounds(world)
    side = rng.choice(BORDER_SIDES)
    thickness = border_thickness(bounds)
    if thickness < MIN_TILE_SIZE:
        raise NoEligibleTile(
            f"Canvas {bounds.width}x{bounds.height} too small to grow a border of at least {MIN_TILE_SIZE}"
        )
    tile = Tile(
        id=new_tile_id(rng),
        color=color,
        rect=border_rect(side, bounds, thickness),
        role=TileRole.BORDER,
        parent_id=None,
        contributor_id=contributor_id,
        submission_index=submission_index,
    )
    add_tile(world, tile)
    logger.info("Grew %s border %.1f thick for %s (submission %d)", side, thickness, color.hex, submission_index)
    return BorderGrowth(tile=tile, side=side, thickness=thickness)
