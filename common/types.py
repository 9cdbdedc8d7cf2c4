from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from common.geo import WEB_MERCATOR_WKID


Bounds = Tuple[float, float, float, float]  # minLon, minLat, maxLon, maxLat


@dataclass(frozen=True, slots=True)
class ServiceExtent:
    """
    Rectangular service extent in projected (Web Mercator) meters.

    Derived from archive bounds; never user supplied.
    """
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    wkid: int = WEB_MERCATOR_WKID

    def __post_init__(self) -> None:
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError("extent min must not exceed max")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "xmin": self.xmin,
            "ymin": self.ymin,
            "xmax": self.xmax,
            "ymax": self.ymax,
            "spatialReference": {"wkid": self.wkid},
        }


@dataclass(frozen=True, slots=True)
class ZoomRange:
    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min < 0 or self.min > self.max:
            raise ValueError("zoom range must satisfy 0 <= min <= max")

    @property
    def levels(self) -> range:
        return range(self.min, self.max + 1)


@dataclass(frozen=True, slots=True)
class LODEntry:
    """One zoom level of the tile pyramid."""
    level: int
    resolution: float  # map units (m) per pixel
    scale: float

    def __post_init__(self) -> None:
        if self.level < 0:
            raise ValueError("level must be >= 0")
        if self.resolution <= 0 or self.scale <= 0:
            raise ValueError("resolution and scale must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "resolution": self.resolution, "scale": self.scale}


@dataclass(frozen=True, slots=True)
class TileAddress:
    """Tile address as received from a client: level/row/col."""
    level: int
    row: int
    col: int

    def __post_init__(self) -> None:
        if self.level < 0 or self.row < 0 or self.col < 0:
            raise ValueError("tile address components must be >= 0")


@dataclass(frozen=True, slots=True)
class NativeAddress:
    """Tile address in the archive's own path order: level/col/row."""
    level: int
    col: int
    row: int

    def path(self) -> str:
        return f"{self.level}/{self.col}/{self.row}"


@dataclass(slots=True)
class TilePayload:
    """
    Opaque tile bytes plus the content headers reported by the store.
    """
    data: bytes
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ArchiveInfo:
    """
    Subset of an archive's metadata table that the services consume.

    bounds: [minLon, minLat, maxLon, maxLat] in degrees, or None if unknown.
    center: (lon, lat, zoom) or None.
    scheme: row convention of the stored tiles ("tms" for MBTiles).
    """
    name: str
    bounds: Optional[Bounds] = None
    min_zoom: Optional[int] = None
    max_zoom: Optional[int] = None
    center: Optional[Tuple[float, float, int]] = None
    format: Optional[str] = None
    scheme: str = "tms"
    metadata: Dict[str, str] = field(default_factory=dict, repr=False)

    @property
    def zoom_range(self) -> Optional[ZoomRange]:
        if self.min_zoom is None or self.max_zoom is None:
            return None
        return ZoomRange(int(self.min_zoom), int(self.max_zoom))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "bounds": list(self.bounds) if self.bounds else None,
            "minzoom": self.min_zoom,
            "maxzoom": self.max_zoom,
            "center": list(self.center) if self.center else None,
            "format": self.format,
            "scheme": self.scheme,
        }
