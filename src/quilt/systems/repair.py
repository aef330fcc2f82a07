"""Post-mutation normalization that keeps the tiles covering the canvas exactly.

The split and growth rules never produce gaps or overlaps on their own; this
pass exists to absorb floating point drift and hand-edited snapshots. Every
correction is logged so drift stays visible.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from esper import World

from quilt.components.tile import Rect, Tile
from quilt.constants import (
    COVERAGE_REPAIR_RATIO,
    EDGE_TOLERANCE,
    GEOMETRY_EPSILON,
    MIN_TILE_SIZE,
)
from quilt.systems.tile_ops import Bounds, canvas_bounds, live_tiles

logger = logging.getLogger(__name__)

MAX_OVERLAP_PASSES = 4


@dataclass(slots=True)
class RepairReport:
    bounds: Bounds
    clamped: List[str] = field(default_factory=list)
    resized: List[str] = field(default_factory=list)
    overlaps_fixed: int = 0
    gaps_filled: List[str] = field(default_factory=list)
    coverage: float = 1.0

    @property
    def changed(self) -> bool:
        return bool(self.clamped or self.resized or self.overlaps_fixed or self.gaps_filled)


def coverage_ratio(tiles: Sequence[Tile], bounds: Bounds) -> float:
    if bounds.area <= 0:
        return 0.0
    return sum(tile.area for tile in tiles) / bounds.area


def _spans_overlap(start_a: float, end_a: float, start_b: float, end_b: float) -> bool:
    return min(end_a, end_b) - max(start_a, start_b) > EDGE_TOLERANCE


def clamp_to_bounds(tiles: Sequence[Tile], bounds: Bounds, report: RepairReport) -> None:
    for index, tile in enumerate(tiles):
        rect = tile.rect
        before = rect.copy()
        if rect.x < bounds.min_x - GEOMETRY_EPSILON:
            rect.width -= bounds.min_x - rect.x
            rect.x = bounds.min_x
        if rect.y < bounds.min_y - GEOMETRY_EPSILON:
            rect.height -= bounds.min_y - rect.y
            rect.y = bounds.min_y
        if rect.right > bounds.max_x + EDGE_TOLERANCE:
            rect.width = bounds.max_x - rect.x
        if rect.bottom > bounds.max_y + EDGE_TOLERANCE:
            rect.height = bounds.max_y - rect.y
        if rect != before:
            report.clamped.append(tile.id)
            logger.warning("Clamped tile %d (%s) to canvas bounds: %s -> %s", index, tile.id, before, rect)

        before = rect.copy()
        if rect.width < MIN_TILE_SIZE - GEOMETRY_EPSILON:
            rect.width = MIN_TILE_SIZE
            if rect.right > bounds.max_x:
                rect.x = max(bounds.min_x, bounds.max_x - MIN_TILE_SIZE)
        if rect.height < MIN_TILE_SIZE - GEOMETRY_EPSILON:
            rect.height = MIN_TILE_SIZE
            if rect.bottom > bounds.max_y:
                rect.y = max(bounds.min_y, bounds.max_y - MIN_TILE_SIZE)
        if rect != before:
            report.resized.append(tile.id)
            logger.warning(
                "Tile %d (%s) was below the minimum size %d: %s -> %s",
                index, tile.id, MIN_TILE_SIZE, before, rect,
            )


def _trim(first: Rect, second: Rect, overlap_x: float, overlap_y: float) -> None:
    """Cut second back across the overlap strip, on the side facing first."""
    if overlap_y >= overlap_x:
        if second.x + second.width / 2 >= first.x + first.width / 2:
            new_left = min(first.right, second.right - MIN_TILE_SIZE)
            second.width = second.right - new_left
            second.x = new_left
        else:
            new_right = max(first.x, second.x + MIN_TILE_SIZE)
            second.width = new_right - second.x
    else:
        if second.y + second.height / 2 >= first.y + first.height / 2:
            new_top = min(first.bottom, second.bottom - MIN_TILE_SIZE)
            second.height = second.bottom - new_top
            second.y = new_top
        else:
            new_bottom = max(first.y, second.y + MIN_TILE_SIZE)
            second.height = new_bottom - second.y


def resolve_overlaps(tiles: Sequence[Tile]) -> int:
    """Trim later tiles wherever two tiles share positive area; returns fixes made."""
    fixed = 0
    for _ in range(MAX_OVERLAP_PASSES):
        fixed_this_pass = 0
        for i in range(len(tiles)):
            for j in range(i + 1, len(tiles)):
                first = tiles[i].rect
                second = tiles[j].rect
                overlap_x, overlap_y = first.overlap(second)
                if overlap_x <= GEOMETRY_EPSILON or overlap_y <= GEOMETRY_EPSILON:
                    continue
                before = second.copy()
                _trim(first, second, overlap_x, overlap_y)
                fixed_this_pass += 1
                logger.warning(
                    "Overlap %.2fx%.2f between tiles %d and %d: trimmed %s -> %s",
                    overlap_x, overlap_y, i, j, before, second,
                )
        fixed += fixed_this_pass
        if not fixed_this_pass:
            break
    return fixed


def fill_gaps(tiles: Sequence[Tile], bounds: Bounds) -> List[str]:
    """Stretch edge tiles across empty space behind them; returns ids of grown tiles."""
    grown: List[str] = []
    for index, tile in enumerate(tiles):
        rect = tile.rect
        others = [other.rect for other in tiles if other is not tile]
        before = rect.copy()

        if abs(rect.right - bounds.max_x) < EDGE_TOLERANCE and rect.x > bounds.min_x + EDGE_TOLERANCE:
            row = [o for o in others if _spans_overlap(o.y, o.bottom, rect.y, rect.bottom)]
            if not any(abs(o.right - rect.x) < EDGE_TOLERANCE for o in row):
                stop = max((o.right for o in row if o.right <= rect.x + EDGE_TOLERANCE), default=bounds.min_x)
                rect.width = rect.right - stop
                rect.x = stop

        if abs(rect.bottom - bounds.max_y) < EDGE_TOLERANCE and rect.y > bounds.min_y + EDGE_TOLERANCE:
            column = [o for o in others if _spans_overlap(o.x, o.right, rect.x, rect.right)]
            if not any(abs(o.bottom - rect.y) < EDGE_TOLERANCE for o in column):
                stop = max((o.bottom for o in column if o.bottom <= rect.y + EDGE_TOLERANCE), default=bounds.min_y)
                rect.height = rect.bottom - stop
                rect.y = stop

        if abs(rect.x - bounds.min_x) < EDGE_TOLERANCE and rect.right < bounds.max_x - EDGE_TOLERANCE:
            row = [o for o in others if _spans_overlap(o.y, o.bottom, rect.y, rect.bottom)]
            if not any(abs(o.x - rect.right) < EDGE_TOLERANCE for o in row):
                stop = min((o.x for o in row if o.x >= rect.right - EDGE_TOLERANCE), default=bounds.max_x)
                rect.width = stop - rect.x

        if abs(rect.y - bounds.min_y) < EDGE_TOLERANCE and rect.bottom < bounds.max_y - EDGE_TOLERANCE:
            column = [o for o in others if _spans_overlap(o.x, o.right, rect.x, rect.right)]
            if not any(abs(o.y - rect.bottom) < EDGE_TOLERANCE for o in column):
                stop = min((o.y for o in column if o.y >= rect.bottom - EDGE_TOLERANCE), default=bounds.max_y)
                rect.height = stop - rect.y

        if rect != before:
            grown.append(tile.id)
            logger.info("Expanded tile %d (%s) to fill a gap: %s -> %s", index, tile.id, before, rect)
    return grown


def repair_tiles(world: World, bounds: Bounds | None = None) -> RepairReport:
    """Normalize live tile geometry in place. Never raises on bad geometry."""
    tiles = live_tiles(world)
    if bounds is None:
        bounds = canvas_bounds(tiles=tiles)
    report = RepairReport(bounds=bounds)
    if not tiles:
        report.coverage = 0.0
        return report

    clamp_to_bounds(tiles, bounds, report)
    report.overlaps_fixed = resolve_overlaps(tiles)

    report.coverage = coverage_ratio(tiles, bounds)
    if report.coverage < COVERAGE_REPAIR_RATIO:
        logger.warning("Low coverage %.2f%% of %.1f units, filling gaps", report.coverage * 100, bounds.area)
        report.gaps_filled = fill_gaps(tiles, bounds)
        report.coverage = coverage_ratio(tiles, bounds)

    if report.changed:
        logger.info(
            "Repair: %d clamped, %d resized, %d overlaps, %d gaps filled, coverage %.2f%%",
            len(report.clamped), len(report.resized), report.overlaps_fixed,
            len(report.gaps_filled), report.coverage * 100,
        )
    return report
