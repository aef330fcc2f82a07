from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from quilt.utils.color_math import Color


class TileRole(Enum):
    """Structural role assigned at or after the freeze."""
    KEY = "key"
    BORDER = "border"


class SplitDirection(Enum):
    """HORIZONTAL cuts parallel to the x-axis (stacks halves), VERTICAL parallel to the y-axis."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(slots=True)
class Rect:
    """Axis-aligned rectangle in canvas units; y grows downward."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def overlap(self, other: "Rect") -> tuple[float, float]:
        """Return the (x, y) extents of the intersection, zero when disjoint."""
        overlap_x = max(0.0, min(self.right, other.right) - max(self.x, other.x))
        overlap_y = max(0.0, min(self.bottom, other.bottom) - max(self.y, other.y))
        return overlap_x, overlap_y

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px < self.right and self.y <= py < self.bottom

    def copy(self) -> "Rect":
        return Rect(self.x, self.y, self.width, self.height)


@dataclass(slots=True)
class Tile:
    """One rectangular, single-colored region of the quilt.

    color is fixed for the tile's lifetime; a split replaces the tile with two
    new ones instead of recoloring it. rect is only touched by invariant repair.
    parent_id is a back-reference for lineage walks and never used to mutate.
    """

    id: str
    color: Color
    rect: Rect
    role: TileRole = TileRole.KEY
    parent_id: str | None = None
    contributor_id: str | None = None
    submission_index: int = 0
    color_family: str | None = None

    @property
    def area(self) -> float:
        return self.rect.area

    def copy(self) -> "Tile":
        return Tile(
            id=self.id,
            color=self.color,
            rect=self.rect.copy(),
            role=self.role,
            parent_id=self.parent_id,
            contributor_id=self.contributor_id,
            submission_index=self.submission_index,
            color_family=self.color_family,
        )
