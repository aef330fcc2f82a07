from __future__ import annotations

import json
import logging
from pathlib import Path

from quilt.engine import QuiltEngine
from quilt.errors import SnapshotError
from quilt.events.bus import EVENT_COLOR_ADDED, EventBus

logger = logging.getLogger(__name__)


class QuiltStorageSystem:
    """Keeps the quilt snapshot in a JSON file, saving after every contribution."""

    def __init__(
        self,
        engine: QuiltEngine,
        event_bus: EventBus,
        *,
        save_path: Path | None = None,
        load_existing: bool = True,
    ) -> None:
        self.engine = engine
        self.event_bus = event_bus
        self._save_path = Path(save_path) if save_path is not None else self._default_save_path()
        self._has_progress = False

        self.event_bus.subscribe(EVENT_COLOR_ADDED, self._on_color_added)

        if load_existing:
            self.load_quilt()
        else:
            self.save_quilt()

    @staticmethod
    def _default_save_path() -> Path:
        return Path(__file__).resolve().parents[3] / "data" / "quilt.json"

    @property
    def save_path(self) -> Path:
        return self._save_path

    @property
    def has_progress(self) -> bool:
        return self._has_progress

    def load_quilt(self) -> None:
        try:
            with self._save_path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            self._start_fresh()
            return
        except json.JSONDecodeError as exc:
            logger.warning("Quilt file %s is not valid JSON (%s), starting a new quilt", self._save_path, exc)
            self._start_fresh()
            return
        try:
            self.engine.load_snapshot(payload)
        except SnapshotError as exc:
            logger.warning("Quilt file %s is malformed (%s), starting a new quilt", self._save_path, exc)
            self._start_fresh()
            return
        self._has_progress = self.engine.state.submission_count > 0

    def reset_quilt(self) -> None:
        self._start_fresh()

    def save_quilt(self) -> None:
        self._save_path.parent.mkdir(parents=True, exist_ok=True)
        with self._save_path.open("w", encoding="utf-8") as handle:
            json.dump(self.engine.snapshot(), handle, indent=2)
        self._has_progress = self.engine.state.submission_count > 0

    def _start_fresh(self) -> None:
        self.engine.initialize()
        self.save_quilt()

    # Event handlers -----------------------------------------------------

    def _on_color_added(self, sender, **payload) -> None:
        self.save_quilt()
