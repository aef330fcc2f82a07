from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from esper import World

from quilt.components.quilt_state import QuiltState
from quilt.components.superseded import Superseded
from quilt.components.tile import Rect, Tile


@dataclass(slots=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_rect(self) -> Rect:
        return Rect(self.min_x, self.min_y, self.width, self.height)


def get_quilt_state(world: World) -> QuiltState:
    for _, state in world.get_component(QuiltState):
        return state
    raise RuntimeError("QuiltState not found")


def new_tile_id(rng: random.Random) -> str:
    return uuid.UUID(int=rng.getrandbits(128), version=4).hex


def get_tile(world: World, tile_id: str) -> Tile | None:
    """Look a tile up by id, including tiles that were already superseded."""
    entity = get_quilt_state(world).entity_index.get(tile_id)
    if entity is None:
        return None
    try:
        return world.component_for_entity(entity, Tile)
    except KeyError:
        return None


def is_live(world: World, tile_id: str) -> bool:
    state = get_quilt_state(world)
    entity = state.entity_index.get(tile_id)
    if entity is None:
        return False
    return not world.has_component(entity, Superseded)


def live_tiles(world: World) -> List[Tile]:
    state = get_quilt_state(world)
    tiles: List[Tile] = []
    for tile_id in state.tile_order:
        tile = get_tile(world, tile_id)
        if tile is not None:
            tiles.append(tile)
    return tiles


def add_tile(world: World, tile: Tile, *, index: int | None = None) -> int:
    """Create an entity for tile and place it in the live order (appended by default)."""
    state = get_quilt_state(world)
    entity = world.create_entity(tile)
    state.entity_index[tile.id] = entity
    if index is None:
        state.tile_order.append(tile.id)
    else:
        state.tile_order.insert(index, tile.id)
    return entity


def replace_tile(world: World, target_id: str, replacements: Sequence[Tile], submission_index: int) -> None:
    """Swap a live tile for its replacements at the same position in the order."""
    state = get_quilt_state(world)
    if not is_live(world, target_id):
        raise ValueError(f"Tile {target_id} is not live")
    position = state.tile_order.index(target_id)
    world.add_component(state.entity_index[target_id], Superseded(by_submission=submission_index))
    del state.tile_order[position]
    for offset, tile in enumerate(replacements):
        add_tile(world, tile, index=position + offset)


def clear_tiles(world: World) -> None:
    """Drop every tile entity, live or superseded."""
    state = get_quilt_state(world)
    for entity, _ in list(world.get_component(Tile)):
        world.delete_entity(entity, immediate=True)
    state.tile_order = []
    state.entity_index = {}


def canvas_bounds(world: World | None = None, tiles: Iterable[Tile] | None = None) -> Bounds:
    """Bounding box of the live tiles (or of the given tiles)."""
    if tiles is None:
        if world is None:
            raise ValueError("canvas_bounds needs a world or a tile list")
        tiles = live_tiles(world)
    rects = [tile.rect for tile in tiles]
    if not rects:
        return Bounds(0.0, 0.0, 0.0, 0.0)
    return Bounds(
        min_x=min(r.x for r in rects),
        min_y=min(r.y for r in rects),
        max_x=max(r.right for r in rects),
        max_y=max(r.bottom for r in rects),
    )
