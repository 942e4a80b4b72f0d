#!/usr/bin/env python3
"""
POI Store - Single Source of Truth for Points of Interest

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Ordered, mutable, in-memory list of annotated points.
Both slice views and the track map render from this list; every mutation
notifies subscribers with the complete list (no incremental diffs).

Key Rules:
- add() rejects a duplicate id (DuplicatePoiError)
- delete() with an out-of-range index is a silent no-op, because the index
  comes from a rendered list that is at most one mutation stale
- replace() swaps the whole list (dataset-bundled POIs)
- No persistence: the store lives as long as the process

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from gpr_viz.events import EventHook
from gpr_viz.models import DuplicatePoiError, Poi, check_unique_poi_ids

logger = logging.getLogger(__name__)

# Server-issued and bundled POIs use "poi-<n>"; user POIs use this prefix
USER_POI_PREFIX = "poi-user-"
DEFAULT_ID_SEED = 100


# ═══════════════════════════════════════════════════════════════════════════
# 🔢 ID GENERATION
# ═══════════════════════════════════════════════════════════════════════════


class PoiIdGenerator:
    """Monotonic id source for user-created POIs.

    The counter starts above any server-assigned numeric id and the prefix
    keeps user ids out of the server's namespace.
    """

    def __init__(self, seed: int = DEFAULT_ID_SEED, prefix: str = USER_POI_PREFIX) -> None:
        self._counter = seed
        self.prefix = prefix

    @property
    def current(self) -> int:
        return self._counter

    def next_id(self) -> Tuple[str, int]:
        """Advance the counter and return (id, number)."""
        self._counter += 1
        return f"{self.prefix}{self._counter}", self._counter


# ═══════════════════════════════════════════════════════════════════════════
# 📍 POI STORE
# ═══════════════════════════════════════════════════════════════════════════


class PoiStore:
    """Ordered list of POIs with change notification."""

    def __init__(self, pois: Optional[Iterable[Poi]] = None) -> None:
        self._pois: List[Poi] = []
        self.changed: EventHook[Tuple[Poi, ...]] = EventHook("poi_store.changed")
        if pois:
            self._pois = self._check_unique(list(pois))

    # --- Queries ---

    def __len__(self) -> int:
        return len(self._pois)

    def __iter__(self) -> Iterator[Poi]:
        return iter(tuple(self._pois))

    def get(self, index: int) -> Optional[Poi]:
        if 0 <= index < len(self._pois):
            return self._pois[index]
        return None

    def find(self, poi_id: str) -> Optional[int]:
        """Index of the POI with poi_id, or None."""
        for i, poi in enumerate(self._pois):
            if poi.id == poi_id:
                return i
        return None

    def as_list(self) -> List[Poi]:
        return list(self._pois)

    def snapshot(self) -> Tuple[Poi, ...]:
        return tuple(self._pois)

    # --- Mutations ---

    def add(self, poi: Poi) -> None:
        """Append poi.

        Raises:
            DuplicatePoiError: If a POI with the same id is already stored
        """
        if self.find(poi.id) is not None:
            raise DuplicatePoiError(f"POI id already in store: {poi.id}")
        self._pois.append(poi)
        logger.debug(f"Added POI {poi.id} ({poi.type.value}), total={len(self._pois)}")
        self._notify()

    def delete(self, index: int) -> Optional[Poi]:
        """Remove and return the POI at index; out of range returns None."""
        if index < 0 or index >= len(self._pois):
            logger.debug(f"Ignoring POI delete for out-of-range index {index}")
            return None
        deleted = self._pois.pop(index)
        logger.debug(f"Deleted POI {deleted.id}, total={len(self._pois)}")
        self._notify()
        return deleted

    def delete_by_id(self, poi_id: str) -> Optional[Poi]:
        index = self.find(poi_id)
        if index is None:
            return None
        return self.delete(index)

    def replace(self, pois: Iterable[Poi]) -> None:
        """Swap the whole list, e.g. for POIs bundled with a dataset."""
        self._pois = self._check_unique(list(pois))
        logger.debug(f"Replaced POI list, total={len(self._pois)}")
        self._notify()

    # --- Internals ---

    def _notify(self) -> None:
        self.changed.emit(self.snapshot())

    @staticmethod
    def _check_unique(pois: List[Poi]) -> List[Poi]:
        check_unique_poi_ids(pois)
        return pois
