import random

from esper import World

from quilt.components.quilt_state import QuiltPhase, QuiltState
from quilt.components.tile import Rect, Tile, TileRole
from quilt.constants import CANVAS_SIZE, DEFAULT_COLOR
from quilt.systems.tile_ops import add_tile, clear_tiles, get_quilt_state, new_tile_id
from quilt.utils.color_math import Color


def create_world(
    *,
    canvas_size: float = CANVAS_SIZE,
    seed_color: str = DEFAULT_COLOR,
    rng: random.Random | None = None,
) -> World:
    """Build a world holding one quilt: the state singleton plus the seed tile."""
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "canvas_size", canvas_size)
    setattr(world, "seed_color", Color.parse(seed_color))

    # Register the quilt state resource before any tile so lookups always succeed.
    world.create_entity(QuiltState())
    seed_quilt(world)
    return world


def seed_quilt(world: World) -> Tile:
    """Reset the quilt to a single tile covering the whole canvas."""
    clear_tiles(world)
    state = get_quilt_state(world)
    state.submission_count = 0
    state.phase = QuiltPhase.PRE_FREEZE
    state.frozen_colors = []
    state.family_index = {}

    size = getattr(world, "canvas_size", CANVAS_SIZE)
    seed = Tile(
        id=new_tile_id(world.random),
        color=getattr(world, "seed_color", Color.parse(DEFAULT_COLOR)),
        rect=Rect(0.0, 0.0, float(size), float(size)),
        role=TileRole.KEY,
        submission_index=0,
    )
    add_tile(world, seed)
    return seed
