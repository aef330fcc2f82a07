from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Tuple

from esper import World

from quilt.components.tile import Tile
from quilt.constants import HIGHLIGHT_OUTLINE_WIDTH, TILE_WOBBLE, WINDOW_MARGIN
from quilt.events.bus import (
    EVENT_COLOR_ADDED,
    EVENT_QUILT_INITIALIZED,
    EVENT_SNAPSHOT_LOADED,
    EventBus,
)
from quilt.systems.tile_ops import Bounds, canvas_bounds, live_tiles

Point = Tuple[float, float]
HIGHLIGHT_COLOR = (255, 255, 255, 220)


@dataclass(slots=True)
class CanvasTransform:
    """Maps canvas units (y down) onto window pixels (y up), centered and uniformly scaled."""

    bounds: Bounds
    scale: float
    offset_x: float
    offset_y: float
    window_height: float

    def to_window(self, x: float, y: float) -> Point:
        wx = self.offset_x + (x - self.bounds.min_x) * self.scale
        wy = self.window_height - (self.offset_y + (y - self.bounds.min_y) * self.scale)
        return wx, wy

    def to_canvas(self, wx: float, wy: float) -> Point:
        x = (wx - self.offset_x) / self.scale + self.bounds.min_x
        y = (self.window_height - wy - self.offset_y) / self.scale + self.bounds.min_y
        return x, y


def build_transform(bounds: Bounds, window_width: float, window_height: float, margin: float) -> CanvasTransform:
    usable_w = max(window_width - 2 * margin, 1.0)
    usable_h = max(window_height - 2 * margin, 1.0)
    scale = min(usable_w / max(bounds.width, 1.0), usable_h / max(bounds.height, 1.0))
    return CanvasTransform(
        bounds=bounds,
        scale=scale,
        offset_x=(window_width - bounds.width * scale) / 2,
        offset_y=(window_height - bounds.height * scale) / 2,
        window_height=window_height,
    )


@dataclass(slots=True)
class TileLayout:
    tile_id: str
    color: Tuple[int, int, int]
    corners: List[Point]   # top-left, top-right, bottom-right, bottom-left in window pixels
    highlighted: bool = False


class QuiltRenderer:
    """Draws live tiles as slightly wobbly quilt patches.

    Corner jitter is drawn once per tile id and cached so patches hold still
    between frames. In headless mode only the layout is computed.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        margin: float = WINDOW_MARGIN,
        wobble: float = TILE_WOBBLE,
        rng: random.Random | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.margin = margin
        self.wobble = wobble
        self.random = rng or random.Random()
        self.last_added_id: str | None = None
        self._jitter: Dict[str, List[Point]] = {}
        self._transform: CanvasTransform | None = None
        self.event_bus.subscribe(EVENT_COLOR_ADDED, self.on_color_added)
        self.event_bus.subscribe(EVENT_QUILT_INITIALIZED, self.on_quilt_replaced)
        self.event_bus.subscribe(EVENT_SNAPSHOT_LOADED, self.on_quilt_replaced)

    def on_color_added(self, sender, **payload) -> None:
        result = payload.get("result")
        if result is not None:
            self.last_added_id = result.new_tile.id

    def on_quilt_replaced(self, sender, **payload) -> None:
        self.last_added_id = None
        self._jitter.clear()

    def _corner_jitter(self, tile_id: str) -> List[Point]:
        jitter = self._jitter.get(tile_id)
        if jitter is None:
            half = self.wobble / 2
            jitter = [(self.random.uniform(-half, half), self.random.uniform(-half, half)) for _ in range(4)]
            self._jitter[tile_id] = jitter
        return jitter

    def _tile_corners(self, tile: Tile, transform: CanvasTransform) -> List[Point]:
        rect = tile.rect
        corners = [
            transform.to_window(rect.x, rect.y),
            transform.to_window(rect.right, rect.y),
            transform.to_window(rect.right, rect.bottom),
            transform.to_window(rect.x, rect.bottom),
        ]
        if self.wobble <= 0:
            return corners
        return [(cx + jx, cy + jy) for (cx, cy), (jx, jy) in zip(corners, self._corner_jitter(tile.id))]

    def layout(self, window_width: float, window_height: float) -> Dict[str, TileLayout]:
        tiles = live_tiles(self.world)
        transform = build_transform(canvas_bounds(tiles=tiles), window_width, window_height, self.margin)
        layout: Dict[str, TileLayout] = {}
        for tile in tiles:
            layout[tile.id] = TileLayout(
                tile_id=tile.id,
                color=tile.color.as_tuple(),
                corners=self._tile_corners(tile, transform),
                highlighted=tile.id == self.last_added_id,
            )
        live_ids = set(layout)
        for stale in [tile_id for tile_id in self._jitter if tile_id not in live_ids]:
            del self._jitter[stale]
        self._transform = transform
        return layout

    def render(self, arcade, window_width: float, window_height: float, headless: bool = False) -> None:
        layout = self.layout(window_width, window_height)
        if headless:
            return
        highlighted: List[TileLayout] = []
        for entry in layout.values():
            arcade.draw_polygon_filled(entry.corners, entry.color)
            if entry.highlighted:
                highlighted.append(entry)
        # Outline last so neighbouring patches do not paint over it.
        for entry in highlighted:
            arcade.draw_polygon_outline(entry.corners, HIGHLIGHT_COLOR, HIGHLIGHT_OUTLINE_WIDTH)

    def tile_at(self, window_x: float, window_y: float) -> str | None:
        """Id of the live tile under a window point, using the last computed layout."""
        if self._transform is None:
            return None
        x, y = self._transform.to_canvas(window_x, window_y)
        for tile in live_tiles(self.world):
            if tile.rect.contains_point(x, y):
                return tile.id
        return None
