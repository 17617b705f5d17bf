"""Timeline management for the training session.

This module implements the single logical clock that every timed behaviour in
a session runs on. Package delays, auto-reverts, dialogue durations and the
alarm countdown are all entries on one timeline queue, advanced by the host
through explicit elapsed-time ticks.

Core Concepts:
- Time is measured in seconds (floats) since the session started
- Entries are processed in chronological order, ties in scheduling order
- Entries are owned by an id so a whole run can be cancelled at once
- Removal is lazy: cancelled entries stay in the heap and are skipped when
  they surface
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


TimelineCallback = Callable[[], None]


@dataclass(order=True)
class TimelineEntry:
    """A scheduled callback.

    Entries compare by (execution_time, sequence_id) only, which is the heap
    order: earlier times first, scheduling order for equal times.
    """
    execution_time: float
    sequence_id: int = 0
    # Package run, dialogue, countdown, ...
    owner_id: str = field(default="", compare=False)
    callback: Optional[TimelineCallback] = field(default=None, compare=False, repr=False)
    description: str = field(default="", compare=False)


class Timeline:
    """Cooperative scheduler for a single session.

    Nothing here blocks: a "wait" is an entry whose callback resumes the
    waiting component once the host has advanced the clock far enough.
    Callbacks may schedule and cancel entries. A callback that calls
    advance() itself gets 0 back; the outer pass keeps draining, so entries
    due now that the callback scheduled still run in the same pass.
    """

    def __init__(self):
        self._queue: list[TimelineEntry] = []
        # Live entries by sequence id; anything in the heap but not here is removed
        self._pending: dict[int, TimelineEntry] = {}
        self._current_time: float = 0.0
        self._sequence_counter: int = 0
        self._processing = False

    @property
    def current_time(self) -> float:
        """Seconds since the session started."""
        return self._current_time

    @property
    def is_empty(self) -> bool:
        return not self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self,
                 delay: float,
                 callback: Optional[TimelineCallback],
                 owner_id: str,
                 description: str = "") -> int:
        """Schedule a callback to run after a delay.

        Args:
            delay: Seconds from now; negative values are treated as zero
            callback: Called with no arguments when the entry comes due
            owner_id: Identifier used for bulk cancellation
            description: What the entry does, for previews and debugging

        Returns:
            Sequence ID of the entry, usable with cancel()
        """
        self._sequence_counter += 1
        entry = TimelineEntry(
            execution_time=self._current_time + max(0.0, delay),
            sequence_id=self._sequence_counter,
            owner_id=owner_id,
            callback=callback,
            description=description,
        )
        heapq.heappush(self._queue, entry)
        self._pending[entry.sequence_id] = entry
        return entry.sequence_id

    def cancel(self, sequence_id: int) -> bool:
        """Cancel a single entry.

        Returns:
            True if a pending entry was cancelled
        """
        return self._pending.pop(sequence_id, None) is not None

    def remove_entry(self, owner_id: str) -> int:
        """Cancel every pending entry of an owner.

        Returns:
            Number of entries cancelled
        """
        doomed = [seq for seq, entry in self._pending.items() if entry.owner_id == owner_id]
        for seq in doomed:
            del self._pending[seq]
        return len(doomed)

    def has_entries_for(self, owner_id: str) -> bool:
        return any(entry.owner_id == owner_id for entry in self._pending.values())

    def peek_next(self) -> Optional[TimelineEntry]:
        """Next pending entry, or None; discards removed entries on the way."""
        self._drop_removed_head()
        return self._queue[0] if self._queue else None

    def pop_next(self) -> Optional[TimelineEntry]:
        """Remove and return the next pending entry.

        Moves current_time forward to the entry's execution_time.
        """
        self._drop_removed_head()
        if not self._queue:
            return None
        entry = heapq.heappop(self._queue)
        del self._pending[entry.sequence_id]
        self._current_time = max(self._current_time, entry.execution_time)
        return entry

    def _drop_removed_head(self) -> None:
        while self._queue and self._queue[0].sequence_id not in self._pending:
            heapq.heappop(self._queue)

    def advance(self, elapsed: float) -> int:
        """Advance the clock and run every entry that comes due.

        Entries run in chronological order and current_time is moved to each
        entry's time before its callback fires, so entries scheduled from a
        callback are measured from the moment they were scheduled.

        Args:
            elapsed: Seconds to advance; negative values are treated as zero

        Returns:
            Number of entries processed
        """
        if self._processing:
            return 0

        target_time = self._current_time + max(0.0, elapsed)
        processed = 0
        self._processing = True
        try:
            while True:
                entry = self.peek_next()
                if entry is None or entry.execution_time > target_time:
                    break
                self.pop_next()
                processed += 1
                if entry.callback is not None:
                    entry.callback()
        finally:
            self._processing = False

        self._current_time = max(self._current_time, target_time)
        return processed

    def run_due(self) -> int:
        """Run entries due at the current time without moving the clock."""
        return self.advance(0.0)

    def get_preview(self, count: int) -> list[TimelineEntry]:
        """The next ``count`` pending entries in execution order."""
        return sorted(self._pending.values())[:count]

    def clear(self) -> None:
        """Drop every entry and reset the clock to zero."""
        self._queue.clear()
        self._pending.clear()
        self._current_time = 0.0
        self._sequence_counter = 0

    def cleanup_removed_entries(self) -> int:
        """Rebuild the heap without removed entries.

        Returns:
            Number of removed entries purged from the heap
        """
        old_size = len(self._queue)
        self._queue = list(self._pending.values())
        heapq.heapify(self._queue)
        return old_size - len(self._queue)

    def get_stats(self) -> dict[str, Any]:
        """Timeline statistics for debugging."""
        return {
            "current_time": self._current_time,
            "total_entries": len(self._queue),
            "active_entries": len(self._pending),
            "removed_entries": len(self._queue) - len(self._pending),
            "sequence_counter": self._sequence_counter,
        }
