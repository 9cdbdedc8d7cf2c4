from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from common.types import ServiceExtent, ZoomRange


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    extent: Optional[ServiceExtent] = None
    zoom_range: Optional[ZoomRange] = None
    source: Optional[str] = None  # archive the values came from

    @property
    def resolved(self) -> bool:
        return self.extent is not None


class ServiceState:
    """
    Single-writer cell for the archive-derived extent and zoom range.

    Both values are swapped in one replace() so readers never see an extent
    from one inspection next to a zoom range from another.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snap = StateSnapshot()

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return self._snap

    def replace(
        self,
        extent: Optional[ServiceExtent],
        zoom_range: Optional[ZoomRange],
        source: Optional[str] = None,
    ) -> StateSnapshot:
        snap = StateSnapshot(extent=extent, zoom_range=zoom_range, source=source)
        with self._lock:
            self._snap = snap
        return snap
