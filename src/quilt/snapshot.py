"""Conversion between a quilt world and the plain snapshot the storage layer keeps.

Snapshot shape::

    {"tiles": [...], "submissionCount": int, "phase": str,
     "frozenColorSet": ["#rrggbb", ...], "familyIndex": {label: [tile ids]}}

Older records are accepted: tiles without role/colorFamily/parentId get
KEY/None/None, the rect may live under ``position`` or directly on the tile,
and legacy role/phase spellings such as ``KEY_SHAPE`` or ``PRE_FREEZE``
are recognised.
"""
from __future__ import annotations

import random
from typing import Any, Dict, List, Mapping

from esper import World

from quilt.components.quilt_state import QuiltPhase
from quilt.components.tile import Rect, Tile, TileRole
from quilt.constants import FREEZE_THRESHOLD
from quilt.errors import InvalidColor, SnapshotError
from quilt.systems.tile_ops import add_tile, clear_tiles, get_quilt_state, live_tiles, new_tile_id
from quilt.utils.color_math import Color

ROLE_ALIASES = {
    "key": TileRole.KEY,
    "keytile": TileRole.KEY,
    "keyshape": TileRole.KEY,
    "border": TileRole.BORDER,
    "bordertile": TileRole.BORDER,
    "bordershape": TileRole.BORDER,
}
PHASE_ALIASES = {
    "prefreeze": QuiltPhase.PRE_FREEZE,
    "postfreeze": QuiltPhase.POST_FREEZE,
}


def _alias_key(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotError(f"{name} must be a number, got {value!r}")
    return float(value)


def _integer(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SnapshotError(f"{name} must be an integer, got {value!r}")
    return value


def rect_to_dict(rect: Rect) -> Dict[str, float]:
    return {"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height}


def tile_to_dict(tile: Tile) -> Dict[str, Any]:
    return {
        "id": tile.id,
        "role": tile.role.value,
        "color": tile.color.hex,
        "rect": rect_to_dict(tile.rect),
        "parentId": tile.parent_id,
        "contributorId": tile.contributor_id,
        "submissionIndex": tile.submission_index,
        "colorFamily": tile.color_family,
    }


def rect_from_dict(data: Mapping[str, Any]) -> Rect:
    source = data.get("rect", data.get("position", data))
    if not isinstance(source, Mapping):
        raise SnapshotError(f"Tile rect must be a mapping, got {source!r}")
    try:
        rect = Rect(
            _number(source["x"], "x"),
            _number(source["y"], "y"),
            _number(source["width"], "width"),
            _number(source["height"], "height"),
        )
    except KeyError as exc:
        raise SnapshotError(f"Tile rect is missing {exc.args[0]!r}") from exc
    if rect.width < 0 or rect.height < 0:
        raise SnapshotError(f"Tile rect has a negative extent: {rect}")
    return rect


def role_from_value(value: Any) -> TileRole:
    if value is None:
        return TileRole.KEY
    if isinstance(value, TileRole):
        return value
    if isinstance(value, str) and _alias_key(value) in ROLE_ALIASES:
        return ROLE_ALIASES[_alias_key(value)]
    raise SnapshotError(f"Unknown tile role: {value!r}")


def phase_from_value(value: Any, submission_count: int) -> QuiltPhase:
    if value is None:
        return QuiltPhase.POST_FREEZE if submission_count >= FREEZE_THRESHOLD else QuiltPhase.PRE_FREEZE
    if isinstance(value, QuiltPhase):
        return value
    if isinstance(value, str) and _alias_key(value) in PHASE_ALIASES:
        return PHASE_ALIASES[_alias_key(value)]
    raise SnapshotError(f"Unknown quilt phase: {value!r}")


def tile_from_dict(data: Any, rng: random.Random) -> Tile:
    if not isinstance(data, Mapping):
        raise SnapshotError(f"Tile record must be a mapping, got {data!r}")
    try:
        color = Color.parse(data.get("color"))
    except InvalidColor as exc:
        raise SnapshotError(f"Tile has an invalid color: {exc}") from exc
    tile_id = data.get("id") or new_tile_id(rng)
    contributor_id = data.get("contributorId")
    parent_id = data.get("parentId")
    return Tile(
        id=str(tile_id),
        color=color,
        rect=rect_from_dict(data),
        role=role_from_value(data.get("role", data.get("type"))),
        parent_id=str(parent_id) if parent_id is not None else None,
        contributor_id=str(contributor_id) if contributor_id is not None else None,
        submission_index=_integer(data.get("submissionIndex", 0), "submissionIndex"),
        color_family=data.get("colorFamily"),
    )


def _family_index_from_value(value: Any) -> Dict[str, List[str]]:
    if value is None:
        return {}
    # Entry lists ([[label, ids], ...]) come from older exports.
    items = value.items() if isinstance(value, Mapping) else value
    index: Dict[str, List[str]] = {}
    try:
        for label, ids in items:
            index[str(label)] = [str(tile_id) for tile_id in ids]
    except (TypeError, ValueError) as exc:
        raise SnapshotError(f"Malformed family index: {value!r}") from exc
    return index


def world_to_snapshot(world: World) -> Dict[str, Any]:
    state = get_quilt_state(world)
    return {
        "tiles": [tile_to_dict(tile) for tile in live_tiles(world)],
        "submissionCount": state.submission_count,
        "phase": state.phase.value,
        "frozenColorSet": [color.hex for color in state.frozen_colors],
        "familyIndex": {label: list(ids) for label, ids in state.family_index.items()},
    }


def restore_snapshot(world: World, data: Any) -> None:
    """Replace the world's quilt with the snapshot contents.

    The snapshot is fully validated before the world is touched.
    """
    if not isinstance(data, Mapping):
        raise SnapshotError(f"Snapshot must be a mapping, got {type(data).__name__}")
    raw_tiles = data.get("tiles", data.get("shapes", data.get("blocks")))
    if not isinstance(raw_tiles, list) or not raw_tiles:
        raise SnapshotError("Snapshot has no tiles")
    tiles = [tile_from_dict(entry, world.random) for entry in raw_tiles]
    ids = [tile.id for tile in tiles]
    if len(set(ids)) != len(ids):
        raise SnapshotError("Snapshot contains duplicate tile ids")

    count_value = data.get("submissionCount")
    if count_value is None:
        submission_count = max(tile.submission_index for tile in tiles)
    else:
        submission_count = _integer(count_value, "submissionCount")
    phase = phase_from_value(data.get("phase"), submission_count)

    raw_frozen = data.get("frozenColorSet", data.get("keyShapesColorArray", []))
    if not isinstance(raw_frozen, list):
        raise SnapshotError(f"frozenColorSet must be a list, got {raw_frozen!r}")
    try:
        frozen_colors = [Color.parse(value) for value in raw_frozen]
    except InvalidColor as exc:
        raise SnapshotError(f"Invalid frozen color: {exc}") from exc
    family_index = _family_index_from_value(data.get("familyIndex", data.get("colorFamilies")))

    clear_tiles(world)
    state = get_quilt_state(world)
    for tile in tiles:
        add_tile(world, tile)
    state.submission_count = submission_count
    state.phase = phase
    state.frozen_colors = frozen_colors
    state.family_index = family_index
