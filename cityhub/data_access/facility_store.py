"""
In-memory facility collection for one directory domain.

The collection is held as an immutable tuple. Writers either swap in a whole
new tuple or change entries by facility id, so readers always see a consistent
snapshot even while geocoding results arrive out of order.

The app-wide store of a domain only holds the directory listing and
coordinates. Favorites belong to one caller and live in a per-request view
built from it.
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from cityhub.models.models import Facility

Snapshot = Tuple[Facility, ...]


class FacilityStore:
    def __init__(self, facilities: Iterable[Facility] = ()) -> None:
        self._lock = threading.Lock()
        self._facilities: Snapshot = tuple(facilities)
        # (id, address) pairs whose lookup failed or found nothing
        self._unresolved: Set[Tuple[int, str]] = set()
        self.loaded = bool(self._facilities)

    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._facilities

    def get(self, facility_id: int) -> Optional[Facility]:
        for facility in self.snapshot():
            if facility.id == facility_id:
                return facility
        return None

    def replace(self, facilities: Iterable[Facility]) -> Snapshot:
        """Replace the whole collection (fresh load or rollback)."""
        new = tuple(facilities)
        with self._lock:
            self._facilities = new
            self._unresolved = set()
            self.loaded = True
        return new

    def merge_coordinates(self, located: Iterable[Facility]) -> Snapshot:
        """
        Copy ``lat``/``lng`` from ``located`` onto the current entries with the
        same id. Entries that already have coordinates, whose address changed
        meanwhile, or that are no longer present are left alone.
        """
        updates: Dict[int, Facility] = {f.id: f for f in located if f.has_coordinates}
        with self._lock:
            self._facilities = tuple(_with_coordinates_from(f, updates.get(f.id)) for f in self._facilities)
            return self._facilities

    def pending_geocode(self) -> List[Facility]:
        """Entries without coordinates that have not already failed to resolve."""
        with self._lock:
            return [
                f for f in self._facilities
                if not f.has_coordinates and (f.id, f.address) not in self._unresolved
            ]

    def mark_unresolved(self, facilities: Iterable[Facility]) -> None:
        with self._lock:
            self._unresolved.update((f.id, f.address) for f in facilities)

    def update(self, facility_id: int, change: Callable[[Facility], Facility]) -> Tuple[Snapshot, Snapshot]:
        """
        Apply ``change`` to one entry. Returns ``(before, after)`` snapshots.
        Raises KeyError when the id is unknown; nothing is modified then.
        """
        with self._lock:
            before = self._facilities
            if not any(f.id == facility_id for f in before):
                raise KeyError(facility_id)
            after = tuple(change(f) if f.id == facility_id else f for f in before)
            self._facilities = after
        return before, after

    def clear(self) -> None:
        with self._lock:
            self._facilities = ()
            self._unresolved = set()
            self.loaded = False

    def __len__(self) -> int:
        return len(self.snapshot())


def _with_coordinates_from(current: Facility, source: Optional[Facility]) -> Facility:
    if source is None or current.has_coordinates or current.address != source.address:
        return current
    return current.with_coordinates(source.lat, source.lng)
