from __future__ import annotations

import logging
from typing import Dict, List

from esper import World

from quilt.components.quilt_state import QuiltPhase
from quilt.components.tile import TileRole
from quilt.constants import FREEZE_THRESHOLD
from quilt.systems.tile_ops import get_quilt_state, live_tiles
from quilt.utils.color_math import group_similar_colors, is_similar

logger = logging.getLogger(__name__)


def should_freeze(submission_count: int, phase: QuiltPhase) -> bool:
    return phase is QuiltPhase.PRE_FREEZE and submission_count == FREEZE_THRESHOLD


def freeze_quilt(world: World) -> Dict[str, List[str]]:
    """Fix the key pattern: mark every live tile KEY and assign color families.

    Returns the family index (label -> tile ids). Groups that share a label
    are merged under it; a tile matched by several groups keeps the label of
    the last one.
    """
    state = get_quilt_state(world)
    tiles = live_tiles(world)
    state.phase = QuiltPhase.POST_FREEZE

    for tile in tiles:
        tile.role = TileRole.KEY
    state.frozen_colors = [tile.color for tile in tiles]

    family_index: Dict[str, List[str]] = {}
    for label, group in group_similar_colors(state.frozen_colors):
        members = family_index.setdefault(label, [])
        for tile in tiles:
            if any(is_similar(tile.color, color) for color in group):
                tile.color_family = label
                if tile.id not in members:
                    members.append(tile.id)
    state.family_index = family_index

    logger.info(
        "Quilt frozen at submission %d: %d key tiles, families %s",
        state.submission_count,
        len(tiles),
        sorted(family_index),
    )
    return family_index
