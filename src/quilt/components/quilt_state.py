"""Quilt state resource holding the global counters and the live tile order."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from quilt.utils.color_math import Color


class QuiltPhase(Enum):
    """PRE_FREEZE picks tiles at random; POST_FREEZE follows the frozen pattern."""
    PRE_FREEZE = "pre_freeze"
    POST_FREEZE = "post_freeze"


@dataclass
class QuiltState:
    """Singleton component owning the counters of one quilt.

    tile_order: ids of live tiles in render order.
    entity_index: tile id -> entity for every tile ever created (live or superseded).
    frozen_colors: colors of all tiles at freeze time, in tile order.
    family_index: family label -> tile ids labelled at freeze time (not kept live).
    """
    submission_count: int = 0
    phase: QuiltPhase = QuiltPhase.PRE_FREEZE
    tile_order: List[str] = field(default_factory=list)
    entity_index: Dict[str, int] = field(default_factory=dict)
    frozen_colors: List[Color] = field(default_factory=list)
    family_index: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def frozen(self) -> bool:
        return self.phase is QuiltPhase.POST_FREEZE
