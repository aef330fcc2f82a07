"""Entry point for the daily quilt viewer.

Sets up the quilt world, event bus, engine, storage and an Arcade window.
Click to stitch a random pastel into the quilt, right-click a patch to log
its lineage, press R to start over.
"""
import logging
import random
import sys

from arcade import MOUSE_BUTTON_RIGHT, Window, key, run

from quilt.constants import BACKGROUND_COLOR, PICKER_LIGHTNESS, PICKER_SATURATION, WINDOW_HEIGHT, WINDOW_WIDTH
from quilt.engine import QuiltEngine
from quilt.errors import NoEligibleTile
from quilt.events.bus import EventBus
from quilt.rendering.quilt_renderer import QuiltRenderer
from quilt.systems.quilt_storage_system import QuiltStorageSystem
from quilt.utils.color_math import hsl_to_hex
from quilt.world import create_world

LOCAL_CONTRIBUTOR = "local"

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


class QuiltWindow(Window):
    def __init__(self, rng: random.Random | None = None):
        super().__init__(WINDOW_WIDTH, WINDOW_HEIGHT, "Daily Quilt", resizable=True)
        self.random = rng or random.Random()
        self.event_bus = EventBus()
        self.world = create_world(rng=self.random)
        self.engine = QuiltEngine(self.world, self.event_bus)
        self.renderer = QuiltRenderer(self.world, self.event_bus, rng=self.random)
        self.storage_system = QuiltStorageSystem(self.engine, self.event_bus)
        self.background_color = BACKGROUND_COLOR

    def on_draw(self):
        self.clear()
        import arcade
        self.renderer.render(arcade, self.width, self.height)

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):
        if button == MOUSE_BUTTON_RIGHT:
            self.inspect_tile(x, y)
            return
        color = hsl_to_hex(self.random.uniform(0, 360), PICKER_SATURATION, PICKER_LIGHTNESS)
        try:
            self.engine.add_color(color, LOCAL_CONTRIBUTOR)
        except NoEligibleTile:
            logger.warning("Quilt is full, %s was not added", color)

    def inspect_tile(self, x: float, y: float):
        tile_id = self.renderer.tile_at(x, y)
        if tile_id is None:
            return
        chain = self.engine.lineage(tile_id)
        logger.info(
            "Tile %s (%s, by %s) descends from %s",
            tile_id,
            chain[0].color.hex,
            chain[0].contributor_id,
            " <- ".join(tile.id for tile in chain[1:]) or "nothing",
        )

    def on_key_press(self, symbol: int, modifiers: int):
        if symbol == key.R:
            self.storage_system.reset_quilt()


def main():
    configure_logging()
    QuiltWindow()
    run()


if __name__ == "__main__":
    main()
