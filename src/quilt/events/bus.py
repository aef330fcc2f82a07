from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems that are not stored anywhere alive.
        sig.connect(fn, weak=False)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# QUILT LIFECYCLE
# ============================================================================
EVENT_QUILT_INITIALIZED = "quilt_initialized"  # payload: tile_id=str, canvas_size=float
EVENT_SNAPSHOT_LOADED = "snapshot_loaded"      # payload: submission_count=int, phase=QuiltPhase, tile_count=int
EVENT_QUILT_FROZEN = "quilt_frozen"            # payload: submission_index=int, frozen_colors=list[Color], families=dict[str,list[str]]


# ============================================================================
# CONTRIBUTIONS
# ============================================================================
EVENT_COLOR_ADDED = "color_added"      # payload: result=AddColorResult, contributor_id=str
EVENT_TILE_SPLIT = "tile_split"        # payload: target_id=str, direction=SplitDirection, tiles=tuple[Tile,Tile]
EVENT_BORDER_GROWN = "border_grown"    # payload: tile=Tile, side=str, thickness=float


# ============================================================================
# GEOMETRY
# ============================================================================
EVENT_TILES_REPAIRED = "tiles_repaired"  # payload: report=RepairReport
