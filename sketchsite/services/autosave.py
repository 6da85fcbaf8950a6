"""AutosaveScheduler: debounced, best-effort persistence of editor snapshots.

- notify() restarts a per-project debounce timer; the latest snapshot is
  written once the editor has been quiet for debounce_seconds
- Writes are skipped when the snapshot's fingerprint matches the last one
  persisted (or loaded)
- Nothing is written for a project until mark_loaded() has been called, so an
  empty editor can never overwrite stored state while it is still loading
- Failed writes are logged and dropped; the next mutation tries again with
  the newest state
"""

import asyncio
import copy
import hashlib
import json
from collections import defaultdict
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

import structlog

from sketchsite.core.config import get_settings

logger = structlog.get_logger(__name__)

SaveCallable = Callable[[Any, dict[str, Any] | None], Awaitable[Any]]

_NOTHING_PENDING = object()


def fingerprint(snapshot: dict[str, Any] | None) -> str:
    """Stable content hash of a snapshot (key order does not matter)."""
    canonical = json.dumps(snapshot, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class AutosaveScheduler:
    """Per-project debounce timers in front of a save callable.

    Args:
        save: async callable (project_id, snapshot) performing the write
        debounce_seconds: quiet period before a write (defaults to settings)
    """

    def __init__(self, save: SaveCallable, debounce_seconds: float | None = None):
        self.save = save
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else get_settings().autosave_debounce_seconds
        )
        self._loaded: set[Hashable] = set()
        self._fingerprints: dict[Hashable, str] = {}
        self._pending: dict[Hashable, dict[str, Any] | None] = {}
        self._timers: dict[Hashable, asyncio.Task] = {}
        self._write_locks: defaultdict[Hashable, asyncio.Lock] = defaultdict(asyncio.Lock)

    def mark_loaded(self, project_id: Hashable, snapshot: dict[str, Any] | None) -> None:
        """Enable saving for a project whose stored snapshot has finished loading."""
        self._loaded.add(project_id)
        self._fingerprints[project_id] = fingerprint(snapshot)
        logger.debug("autosave_enabled", project_id=str(project_id))

    def is_loaded(self, project_id: Hashable) -> bool:
        return project_id in self._loaded

    def has_pending(self, project_id: Hashable) -> bool:
        return project_id in self._pending

    def acknowledge(self, project_id: Hashable, snapshot: dict[str, Any] | None) -> None:
        """Record a snapshot written by someone else (e.g. a restore) as persisted."""
        self._fingerprints[project_id] = fingerprint(snapshot)

    def notify(self, project_id: Hashable, snapshot: dict[str, Any] | None) -> None:
        """Editor mutation: remember the snapshot and restart the debounce timer."""
        if project_id not in self._loaded:
            logger.debug("autosave_ignored_not_loaded", project_id=str(project_id))
            return

        # Own copy: the editor keeps mutating its document
        self._pending[project_id] = copy.deepcopy(snapshot)
        timer = self._timers.pop(project_id, None)
        if timer is not None:
            timer.cancel()
        self._timers[project_id] = asyncio.get_running_loop().create_task(self._debounced(project_id))

    async def _debounced(self, project_id: Hashable) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Detach first: a notify() during the write schedules a new timer instead of cancelling this write
        self._timers.pop(project_id, None)
        snapshot = self._pending.pop(project_id, _NOTHING_PENDING)
        if snapshot is not _NOTHING_PENDING:
            await self.persist(project_id, snapshot)

    async def persist(self, project_id: Hashable, snapshot: dict[str, Any] | None) -> bool:
        """Write the snapshot unless unchanged. Returns True if a write happened."""
        if project_id not in self._loaded:
            logger.debug("autosave_ignored_not_loaded", project_id=str(project_id))
            return False

        async with self._write_locks[project_id]:
            digest = fingerprint(snapshot)
            if self._fingerprints.get(project_id) == digest:
                logger.debug("autosave_skipped_unchanged", project_id=str(project_id))
                return False

            try:
                await self.save(project_id, snapshot)
            except Exception as e:
                # Best effort: the next mutation retries with newer state
                logger.warning(
                    "autosave_failed",
                    project_id=str(project_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return False

            self._fingerprints[project_id] = digest
            logger.debug("autosave_persisted", project_id=str(project_id))
            return True

    async def flush(self, project_id: Hashable) -> bool:
        """Write any pending snapshot now instead of waiting for the timer."""
        timer = self._timers.pop(project_id, None)
        if timer is not None:
            timer.cancel()
        snapshot = self._pending.pop(project_id, _NOTHING_PENDING)
        if snapshot is _NOTHING_PENDING:
            # A timer that already fired may be mid-write; return only once it lands
            async with self._write_locks[project_id]:
                return False
        return await self.persist(project_id, snapshot)

    def cancel(self, project_id: Hashable) -> None:
        """Drop the pending snapshot and timer for a project."""
        timer = self._timers.pop(project_id, None)
        if timer is not None:
            timer.cancel()
        self._pending.pop(project_id, None)

    def forget(self, project_id: Hashable) -> None:
        """Cancel and disable saving for a project (editor closed)."""
        self.cancel(project_id)
        self._loaded.discard(project_id)
        self._fingerprints.pop(project_id, None)

    async def close(self) -> None:
        """Cancel every timer and wait for them to unwind."""
        timers = list(self._timers.values())
        self._timers.clear()
        self._pending.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
