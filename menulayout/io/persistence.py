"""Debounced saving and faithful loading of layout configurations."""

from __future__ import annotations

import math
import time
from typing import Any, Callable, Dict, Optional

from ..core.exceptions import MalformedConfig, PersistenceFailure
from ..core.models import LayoutConfig
from ..utils.logger import get_logger
from .layout_store import LayoutStore
from .serialization import config_from_dict, config_to_dict

LOGGER = get_logger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class PersistenceAdapter:
    """Coalesce bursts of edits into one trailing write.

    ``save`` only snapshots the config and pushes the deadline back; the
    event loop calls ``poll`` and the write happens once the quiet period
    has elapsed. A failed write raises :class:`PersistenceFailure` to the
    caller and is not retried by ``poll``; the snapshot stays pending so an
    explicit ``flush`` (or the next ``save``) can write it. The in-memory
    config is never rolled back.
    """

    def __init__(
        self,
        store: LayoutStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._pending: Optional[Dict[str, Any]] = None
        self._pending_key: Optional[str] = None
        self._deadline: float = 0.0
        self._known_versions: Dict[str, int] = {}
        self.dirty = False
        self.last_error: Optional[PersistenceFailure] = None

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def save(self, config: LayoutConfig) -> None:
        """Schedule a write of ``config`` after the quiet period."""

        if self._pending is not None and self._pending_key != config.menu_key:
            self.flush()
        self._pending = config_to_dict(config)
        self._pending_key = config.menu_key
        self._deadline = self._clock() + self.debounce_seconds
        self.dirty = True
        LOGGER.debug("Save scheduled for %s in %.2fs", config.menu_key, self.debounce_seconds)

    def poll(self) -> Optional[int]:
        """Write the pending snapshot if its quiet period is over."""

        if self._pending is None or self._clock() < self._deadline:
            return None
        return self.flush()

    def flush(self) -> Optional[int]:
        """Write the pending snapshot now; returns the stored version."""

        if self._pending is None or self._pending_key is None:
            return None
        document, menu_key = self._pending, self._pending_key
        expected = self._known_versions.get(menu_key, int(document.get("version", 0)))
        try:
            version = self.store.write(menu_key, document, expected)
        except PersistenceFailure as exc:
            # keep the snapshot for an explicit flush; poll waits for the next save
            self._deadline = math.inf
            self.last_error = exc
            LOGGER.error("Saving layout %s failed: %s", menu_key, exc)
            raise
        self._pending = None
        self._pending_key = None
        self._known_versions[menu_key] = version
        self.last_error = None
        self.dirty = False
        return version

    def write_now(self, config: LayoutConfig) -> int:
        """Bypass the debounce, e.g. for a freshly duplicated menu."""

        expected = self._known_versions.get(config.menu_key, config.version)
        version = self.store.write(config.menu_key, config_to_dict(config), expected)
        self._known_versions[config.menu_key] = version
        return version

    def discard(self) -> bool:
        """Drop the pending snapshot without writing it."""

        dropped = self._pending is not None
        if dropped:
            LOGGER.info("Discarding unsaved layout changes for %s", self._pending_key)
        self._pending = None
        self._pending_key = None
        self.dirty = False
        return dropped

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, menu_key: str) -> LayoutConfig:
        """Rebuild a config from storage, or a fresh default when none exists.

        Positions and sizes are taken verbatim from the document; nothing is
        derived from catalog state here.
        """

        try:
            document = self.store.read(menu_key)
        except MalformedConfig as exc:
            LOGGER.warning("Stored layout for %s unreadable, starting fresh: %s", menu_key, exc)
            document = None
        if document is None:
            config = LayoutConfig(menu_key=menu_key)
            LOGGER.info("No layout stored for %s; created default", menu_key)
        else:
            try:
                config = config_from_dict(document, menu_key)
            except MalformedConfig as exc:
                LOGGER.warning("Stored layout for %s malformed, starting fresh: %s", menu_key, exc)
                config = LayoutConfig(menu_key=menu_key)
            else:
                self._known_versions[menu_key] = config.version
                LOGGER.info(
                    "Loaded layout %s v%s with %s sections",
                    menu_key,
                    config.version,
                    len(config.sections),
                )
        return config

    def delete(self, menu_key: str) -> bool:
        if self._pending_key == menu_key:
            self.discard()
        self._known_versions.pop(menu_key, None)
        return self.store.delete(menu_key)
