"""Quilt engine: the single entry point that applies contributions to a quilt.

Callers must serialize add_color calls; the engine does no locking.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from esper import World

from quilt.components.quilt_state import QuiltPhase, QuiltState
from quilt.components.tile import SplitDirection, Tile, TileRole
from quilt.constants import ANONYMOUS_CONTRIBUTOR
from quilt.errors import InvalidContributor, NoEligibleTile
from quilt.events.bus import (
    EVENT_BORDER_GROWN,
    EVENT_COLOR_ADDED,
    EVENT_QUILT_FROZEN,
    EVENT_QUILT_INITIALIZED,
    EVENT_SNAPSHOT_LOADED,
    EVENT_TILE_SPLIT,
    EVENT_TILES_REPAIRED,
    EventBus,
)
from quilt.snapshot import restore_snapshot, world_to_snapshot
from quilt.systems.freeze import freeze_quilt, should_freeze
from quilt.systems.repair import RepairReport, coverage_ratio, repair_tiles
from quilt.systems.selection import select_target
from quilt.systems.split_ops import choose_direction, split_tile
from quilt.systems.tile_ops import Bounds, canvas_bounds, get_quilt_state, get_tile, live_tiles, replace_tile
from quilt.utils.color_math import Color, family_label, is_similar_to_any
from quilt.world import seed_quilt

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AddColorResult:
    """What one contribution did to the quilt.

    tiles holds the (kept, added) halves of a split, or just the new border
    tile when the canvas grew.
    """
    tiles: Tuple[Tile, ...]
    submission_index: int
    target_id: Optional[str]
    direction: Optional[SplitDirection] = None
    grown: bool = False
    froze: bool = False
    repair: Optional[RepairReport] = None

    @property
    def new_tile(self) -> Tile:
        return self.tiles[-1]


@dataclass(slots=True)
class QuiltView:
    """Read-only copy of the quilt handed to renderers and callers."""
    submission_count: int
    phase: QuiltPhase
    tiles: List[Tile]
    family_index: Dict[str, List[str]]
    frozen_colors: List[Color] = field(default_factory=list)
    contributor_tiles: List[Tile] = field(default_factory=list)


@dataclass(slots=True)
class QuiltStats:
    total_tiles: int
    unique_colors: int
    average_area: float
    bounds: Bounds
    coverage: float


class QuiltEngine:
    """Applies contributions: selection, split, freeze bookkeeping and repair."""

    def __init__(self, world: World, event_bus: EventBus, rng: random.Random | None = None) -> None:
        self.world = world
        self.event_bus = event_bus
        self.random = rng or getattr(world, "random", None) or random.Random()

    @property
    def state(self) -> QuiltState:
        return get_quilt_state(self.world)

    def initialize(self) -> Tile:
        seed = seed_quilt(self.world)
        logger.info("Quilt initialized with seed tile %s (%s)", seed.id, seed.color.hex)
        self.event_bus.emit(EVENT_QUILT_INITIALIZED, tile_id=seed.id, canvas_size=seed.rect.width)
        return seed

    def add_color(self, color: Any, contributor_id: str = ANONYMOUS_CONTRIBUTOR) -> AddColorResult:
        parsed = Color.parse(color)
        if not isinstance(contributor_id, str) or not contributor_id.strip():
            raise InvalidContributor(f"Contributor id must be a non-empty string, got {contributor_id!r}")

        state = self.state
        state.submission_count += 1
        submission_index = state.submission_count

        froze = False
        if should_freeze(state.submission_count, state.phase):
            families = freeze_quilt(self.world)
            froze = True
            self.event_bus.emit(
                EVENT_QUILT_FROZEN,
                submission_index=submission_index,
                frozen_colors=list(state.frozen_colors),
                families={label: list(ids) for label, ids in families.items()},
            )

        try:
            selection = select_target(self.world, parsed, contributor_id, submission_index, self.random)
        except NoEligibleTile:
            logger.error("No tile can host %s (submission %d)", parsed.hex, submission_index)
            raise

        if selection.grown:
            growth = selection.growth
            result = AddColorResult(
                tiles=(selection.tile,),
                submission_index=submission_index,
                target_id=None,
                grown=True,
                froze=froze,
            )
            self.event_bus.emit(
                EVENT_BORDER_GROWN, tile=selection.tile, side=growth.side, thickness=growth.thickness
            )
        else:
            target = selection.tile
            direction = choose_direction(target, self.random)
            kept, added = split_tile(target, parsed, direction, contributor_id, submission_index, self.random)
            replace_tile(self.world, target.id, (kept, added), submission_index)
            if state.frozen:
                self._classify(added)
            result = AddColorResult(
                tiles=(kept, added),
                submission_index=submission_index,
                target_id=target.id,
                direction=direction,
                froze=froze,
            )
            self.event_bus.emit(EVENT_TILE_SPLIT, target_id=target.id, direction=direction, tiles=result.tiles)

        result.repair = repair_tiles(self.world)
        self.event_bus.emit(EVENT_TILES_REPAIRED, report=result.repair)

        logger.info(
            "Added %s from %s (submission %d, %s)",
            parsed.hex,
            contributor_id,
            submission_index,
            "border grown" if result.grown else f"split {result.target_id}",
        )
        self.event_bus.emit(EVENT_COLOR_ADDED, result=result, contributor_id=contributor_id)
        return result

    def _classify(self, tile: Tile) -> None:
        if is_similar_to_any(tile.color, self.state.frozen_colors):
            tile.role = TileRole.KEY
            tile.color_family = family_label(tile.color)
        else:
            tile.role = TileRole.BORDER

    # Lineage -------------------------------------------------------------

    def lineage(self, tile_id: str) -> List[Tile]:
        """The tile followed by its known ancestors, nearest first.

        The walk stops at a tile without a parent or whose parent is unknown
        to this world (snapshots only carry live tiles).
        """
        chain: List[Tile] = []
        seen: set[str] = set()
        current = get_tile(self.world, tile_id)
        while current is not None and current.id not in seen:
            chain.append(current)
            seen.add(current.id)
            if current.parent_id is None:
                break
            current = get_tile(self.world, current.parent_id)
        return chain

    def find_contributor_tiles(self, contributor_id: str) -> List[Tile]:
        """Live tiles whose lineage passes through a tile attributed to contributor_id."""
        if not contributor_id:
            return []
        return [
            tile
            for tile in live_tiles(self.world)
            if any(ancestor.contributor_id == contributor_id for ancestor in self.lineage(tile.id))
        ]

    # Reads ---------------------------------------------------------------

    def get_state(self, contributor_id: str | None = None) -> QuiltView:
        state = self.state
        contributor_tiles = self.find_contributor_tiles(contributor_id) if contributor_id else []
        return QuiltView(
            submission_count=state.submission_count,
            phase=state.phase,
            tiles=[tile.copy() for tile in live_tiles(self.world)],
            family_index={label: list(ids) for label, ids in state.family_index.items()},
            frozen_colors=list(state.frozen_colors),
            contributor_tiles=[tile.copy() for tile in contributor_tiles],
        )

    def get_stats(self) -> QuiltStats:
        tiles = live_tiles(self.world)
        bounds = canvas_bounds(tiles=tiles)
        return QuiltStats(
            total_tiles=len(tiles),
            unique_colors=len({tile.color for tile in tiles}),
            average_area=sum(tile.area for tile in tiles) / len(tiles) if tiles else 0.0,
            bounds=bounds,
            coverage=coverage_ratio(tiles, bounds),
        )

    # Persistence ---------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return world_to_snapshot(self.world)

    def load_snapshot(self, data: Any) -> RepairReport:
        restore_snapshot(self.world, data)
        state = self.state
        report = repair_tiles(self.world)
        logger.info(
            "Loaded quilt snapshot: %d tiles, submission %d, %s",
            len(state.tile_order),
            state.submission_count,
            state.phase.value,
        )
        self.event_bus.emit(
            EVENT_SNAPSHOT_LOADED,
            submission_count=state.submission_count,
            phase=state.phase,
            tile_count=len(state.tile_order),
        )
        return report
