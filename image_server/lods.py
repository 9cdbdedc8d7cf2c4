from __future__ import annotations

from typing import List, Optional

from common.types import LODEntry, ZoomRange

# Level-0 resolution (m/px) of 256px Web Mercator tiles
BASE_RESOLUTION = 156543.03392804097
DPI = 96
INCHES_PER_METER = 39.37

# Single usable level advertised until the archive reports its zoom range
FALLBACK_LOD = LODEntry(level=16, resolution=0.5969, scale=2259.57191)


def resolution_for(level: int) -> float:
    return BASE_RESOLUTION / (2 ** int(level))


def scale_for(resolution: float) -> float:
    return resolution * DPI * INCHES_PER_METER


def generate_lods(zoom_range: Optional[ZoomRange]) -> List[LODEntry]:
    """
    LOD pyramid for [min, max] inclusive, ascending by level.

    Clients assume increasing level means decreasing resolution, so the
    ordering matters. With no zoom range, returns [FALLBACK_LOD].
    """
    if zoom_range is None:
        return [FALLBACK_LOD]
    lods: List[LODEntry] = []
    for z in zoom_range.levels:
        res = resolution_for(z)
        lods.append(LODEntry(level=z, resolution=res, scale=scale_for(res)))
    return lods
