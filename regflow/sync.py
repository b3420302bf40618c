"""Draft synchronizer: turns committed mutations into draft store calls."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple

from .constants import DEFAULT_DEBOUNCE_SECONDS
from .persistence import DraftRecord, DraftStore
from .registry import StepKey, resolve_step_key

logger = logging.getLogger(__name__)


class DraftSynchronizer:
    """Loads a draft once and saves step drafts in the background.

    Saves are fire-and-forget. Saves for the same step key are debounced and
    numbered: a newer mutation cancels a save that has not started yet, and a
    save that wakes up after a newer one was scheduled skips itself. Sends for
    one step key are serialized so a stale payload can never land after a
    fresh one. Saves for different step keys run independently.

    Failures never propagate. They are logged and reflected in
    ``last_save_failed`` so the UI can show a passive "not saved" hint.
    """

    def __init__(
        self,
        store: DraftStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._store = store
        self._debounce = debounce_seconds
        self._sequence: Dict[StepKey, int] = defaultdict(int)
        self._pending: Dict[StepKey, Tuple[int, asyncio.Task]] = {}
        self._sending: Dict[StepKey, int] = {}
        self._locks: Dict[StepKey, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._tasks: Set[asyncio.Task] = set()
        self._failed_steps: Set[StepKey] = set()
        self._closed = False
        self.has_saved_at_least_once = False

    # ------------------------------------------------------------------
    @property
    def debounce_seconds(self) -> float:
        return self._debounce

    @property
    def last_save_failed(self) -> bool:
        return bool(self._failed_steps)

    @property
    def failed_steps(self) -> Set[StepKey]:
        return set(self._failed_steps)

    @property
    def pending_steps(self) -> Set[StepKey]:
        return {key for key, (_, task) in self._pending.items() if not task.done()}

    @property
    def is_saved(self) -> bool:
        """``True`` when nothing is outstanding and the last saves succeeded."""
        return not self.pending_steps and not self.last_save_failed

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    async def load_draft(self, owner_id: str) -> Optional[DraftRecord]:
        """Return the owner's stored draft, or ``None``.

        Any store failure is treated as "no prior draft" so that registration
        can always start.
        """
        try:
            draft = await self._store.load_draft(owner_id)
        except Exception as e:
            logger.warning(f"Failed to load draft for owner={owner_id}: {e}. Starting empty.")
            return None
        if draft is None:
            logger.info(f"No saved draft for owner={owner_id}")
        else:
            logger.info(
                f"Loaded draft for owner={owner_id} with completed steps {sorted(draft.completed_steps)}"
            )
        return draft

    def save_step_draft(
        self,
        owner_id: str,
        step_key: StepKey | str,
        sub_document: Mapping[str, Any],
        completed_steps: Iterable[int],
        current_step: Optional[int] = None,
    ) -> None:
        """Schedule a save of one step's sub-document.

        Returns immediately. Without a running event loop nothing can be
        scheduled; the step is reported as not saved.
        """
        if self._closed:
            logger.debug(f"Synchronizer closed; dropping save for {step_key}")
            return

        key = resolve_step_key(step_key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._failed_steps.add(key)
            logger.warning(
                f"No running event loop; draft step {key.value} for owner={owner_id} not saved"
            )
            return

        self._sequence[key] += 1
        seq = self._sequence[key]

        previous = self._pending.get(key)
        if previous is not None:
            prev_seq, prev_task = previous
            if not prev_task.done() and self._sending.get(key) != prev_seq:
                prev_task.cancel()
                logger.debug(f"Coalesced draft save #{prev_seq} for {key.value} into #{seq}")

        payload = {
            "owner_id": owner_id,
            "step_key": key.value,
            "data": dict(sub_document),
            "completed_steps": sorted(set(completed_steps)),
            "current_step": current_step,
            "updated_at": datetime.now(timezone.utc),
        }
        task = loop.create_task(self._save_later(key, seq, payload))
        self._pending[key] = (seq, task)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _save_later(self, key: StepKey, seq: int, payload: Dict[str, Any]) -> None:
        if self._debounce > 0:
            await asyncio.sleep(self._debounce)
        async with self._locks[key]:
            if seq != self._sequence[key] or self._closed:
                logger.debug(f"Skipping superseded draft save #{seq} for {key.value}")
                return
            self._sending[key] = seq
            try:
                await self._store.save_step(**payload)
            except Exception as e:
                if not self._closed:
                    self._failed_steps.add(key)
                logger.warning(
                    f"Failed to save draft step {key.value} for owner={payload['owner_id']}: {e}"
                )
                return
            finally:
                self._sending.pop(key, None)

        if self._closed:
            # the owner went away while this save was in flight
            return
        self._failed_steps.discard(key)
        self.has_saved_at_least_once = True
        logger.debug(f"Saved draft step {key.value} for owner={payload['owner_id']}")

    async def flush(self) -> None:
        """Wait until every scheduled save has finished or been superseded."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Stop issuing saves.

        Pending saves are cancelled; saves already in flight are allowed to
        finish but their outcome is discarded.
        """
        self._closed = True
        for key, (seq, task) in list(self._pending.items()):
            if not task.done() and self._sending.get(key) != seq:
                task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._pending.clear()
