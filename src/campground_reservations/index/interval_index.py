# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""IntervalIndex: per-campground ordered index of booked date ranges."""

import bisect
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from ..types.date_range import DateRange
from ..types.reservation import Reservation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntervalEntry:
    """
    One active reservation's footprint in the index.

    Attributes:
        date_range: The booked half-open range
        reservation_id: The reservation that owns the entry
        count: Units held over the whole range
    """

    date_range: DateRange
    reservation_id: str
    count: int

    @property
    def sort_key(self) -> tuple[date, date, str]:
        return (self.date_range.start, self.date_range.end, self.reservation_id)


class IntervalIndex:
    """
    Ordered index of active reservation ranges, grouped by campground.

    Primary storage: Dict[campground_id, List[IntervalEntry]] sorted by start
    Sort keys: Dict[campground_id, List[(start, end, reservation_id)]] kept
        parallel to the entries for bisect lookups
    Secondary index: Dict[reservation_id, campground_id]

    ARCHITECTURE NOTE:
    The index is a derived cache. Reservation records in the repository are
    the system of record and the index can be rebuilt from them at any time
    with ``rebuild``. Mutations must happen while the caller holds the
    campground's admission lock; the index itself does no locking, which is
    safe because all access happens on a single event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[IntervalEntry]] = {}
        self._keys: dict[str, list[tuple[date, date, str]]] = {}
        self._owner: dict[str, str] = {}

    def insert(
        self,
        campground_id: str,
        reservation_id: str,
        date_range: DateRange,
        count: int,
    ) -> None:
        """
        Add an entry. Re-inserting a known reservation id replaces its entry.

        Args:
            campground_id: The campground the reservation belongs to
            reservation_id: The reservation id
            date_range: The booked range
            count: Units reserved
        """
        if reservation_id in self._owner:
            self.remove(self._owner[reservation_id], reservation_id)

        entry = IntervalEntry(date_range, reservation_id, count)
        keys = self._keys.setdefault(campground_id, [])
        entries = self._entries.setdefault(campground_id, [])
        pos = bisect.bisect_left(keys, entry.sort_key)
        keys.insert(pos, entry.sort_key)
        entries.insert(pos, entry)
        self._owner[reservation_id] = campground_id

        logger.debug(
            "Indexed reservation: campground_id=%s, reservation_id=%s, range=%s, count=%d",
            campground_id,
            reservation_id,
            date_range,
            count,
        )

    def remove(self, campground_id: str, reservation_id: str) -> bool:
        """
        Remove a reservation's entry (idempotent).

        Returns:
            True if an entry was removed, False if none was indexed
        """
        if self._owner.get(reservation_id) != campground_id:
            return False

        entries = self._entries[campground_id]
        keys = self._keys[campground_id]
        for pos, entry in enumerate(entries):
            if entry.reservation_id == reservation_id:
                del entries[pos]
                del keys[pos]
                break
        del self._owner[reservation_id]

        if not entries:
            del self._entries[campground_id]
            del self._keys[campground_id]

        logger.debug(
            "Removed reservation from index: campground_id=%s, reservation_id=%s",
            campground_id,
            reservation_id,
        )
        return True

    def _overlapping(
        self, campground_id: str, date_range: DateRange
    ) -> list[IntervalEntry]:
        entries = self._entries.get(campground_id)
        if not entries:
            return []
        # Entries starting at or after the query end cannot overlap it
        stop = bisect.bisect_left(self._keys[campground_id], (date_range.end,))
        return [e for e in entries[:stop] if e.date_range.end > date_range.start]

    def query(self, campground_id: str, date_range: DateRange) -> int:
        """
        Return the peak number of reserved units at any instant in ``date_range``.

        Sweeps the start (+count) and end (-count) events of every overlapping
        entry, clipped to the query range. At equal positions end events are
        applied first, so a stay ending on day D never conflicts with one
        starting on D. Unknown campgrounds have a peak of 0.
        """
        events: list[tuple[date, int, int]] = []
        for entry in self._overlapping(campground_id, date_range):
            clipped = entry.date_range.clip(date_range)
            if clipped is None:
                continue
            # Second tuple element orders ends (0) before starts (1)
            events.append((clipped.start, 1, entry.count))
            events.append((clipped.end, 0, -entry.count))

        events.sort()
        peak = 0
        current = 0
        for _, _, delta in events:
            current += delta
            peak = max(peak, current)
        return peak

    def occupancy_by_day(
        self, campground_id: str, date_range: DateRange
    ) -> dict[date, int]:
        """Return reserved units for each night of ``date_range``."""
        occupancy = dict.fromkeys(date_range.days(), 0)
        for entry in self._overlapping(campground_id, date_range):
            for day in occupancy:
                if entry.date_range.contains(day):
                    occupancy[day] += entry.count
        return occupancy

    def rebuild(self, reservations: Iterable[Reservation]) -> int:
        """
        Discard the index and reload it from the active reservations given.

        Returns:
            Number of entries loaded
        """
        self.clear()
        loaded = 0
        for reservation in reservations:
            if not reservation.is_active:
                continue
            self.insert(
                reservation.campground_id,
                reservation.id,
                reservation.date_range,
                reservation.count,
            )
            loaded += 1
        logger.info("Rebuilt interval index with %d active reservations", loaded)
        return loaded

    def clear(self) -> None:
        self._entries.clear()
        self._keys.clear()
        self._owner.clear()

    def entries(self, campground_id: str) -> list[IntervalEntry]:
        """Return a copy of a campground's entries, ordered by start."""
        return list(self._entries.get(campground_id, ()))

    def reservation_ids(self, campground_id: str) -> set[str]:
        return {e.reservation_id for e in self._entries.get(campground_id, ())}

    def campground_ids(self) -> set[str]:
        return set(self._entries)

    def __contains__(self, reservation_id: object) -> bool:
        return reservation_id in self._owner

    def __len__(self) -> int:
        return len(self._owner)


__all__ = ["IntervalEntry", "IntervalIndex"]
