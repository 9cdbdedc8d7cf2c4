from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

import requests

from archive_server.mbtiles import ArchiveOpenError, MBTilesArchive
from common.geo import WEB_MERCATOR_WKID, project_bounds
from common.logging_setup import get_logger
from common.types import ArchiveInfo, ServiceExtent
from image_server.state import ServiceState


log = get_logger("image_server.extent")


def resolve_extent(bounds: Optional[Sequence[float]]) -> Optional[ServiceExtent]:
    """
    [minLon, minLat, maxLon, maxLat] (deg) -> ServiceExtent in EPSG:3857.
    Returns None when bounds are absent or malformed.
    """
    if not bounds or len(bounds) != 4:
        return None
    try:
        xmin, ymin, xmax, ymax = project_bounds(bounds)
        return ServiceExtent(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax, wkid=WEB_MERCATOR_WKID)
    except (TypeError, ValueError) as e:
        log.warning("Archive bounds are unusable; ignoring", extra={"extra": {"bounds": list(bounds), "error": str(e)}})
        return None


def inspect_archive(state: ServiceState, info: ArchiveInfo) -> bool:
    """
    Commit extent and zoom range from one archive-metadata read.

    Absent bounds leave the state untouched. A missing zoom range keeps the
    previously known one. Returns True if the state was replaced.
    """
    extent = resolve_extent(info.bounds)
    if extent is None:
        log.info("Archive reported no bounds; state unchanged", extra={"extra": {"archive": info.name}})
        return False
    try:
        zoom_range = info.zoom_range
    except ValueError:
        log.warning(
            "Archive zoom range is invalid; keeping previous",
            extra={"extra": {"archive": info.name, "minzoom": info.min_zoom, "maxzoom": info.max_zoom}},
        )
        zoom_range = None
    zoom_range = zoom_range or state.snapshot().zoom_range
    state.replace(extent, zoom_range, source=info.name)
    log.info(
        "Auto extent & LOD range loaded",
        extra={
            "extra": {
                "archive": info.name,
                "extent": extent.to_dict(),
                "zoom_range": [zoom_range.min, zoom_range.max] if zoom_range else None,
            }
        },
    )
    return True


def inspect_archive_file(state: ServiceState, path: Union[str, Path]) -> bool:
    """
    Open an archive read-only and run inspect_archive() on its info.
    An unreadable archive is logged and leaves the state unchanged.
    """
    try:
        with MBTilesArchive.open(path) as mb:
            info = mb.get_info()
    except ArchiveOpenError as e:
        log.warning("Archive inspection failed", extra={"extra": {"path": str(path), "error": str(e)}})
        return False
    return inspect_archive(state, info)


def inspect_upstream(
    state: ServiceState,
    session: requests.Session,
    base_url: str,
    file_name: str,
    timeout_s: float = 10.0,
) -> bool:
    """
    Inspect an archive through the archive server's /tiles/{fileName}.json
    document, for deployments where the archive file is not local.
    """
    url = f"{base_url.rstrip('/')}/tiles/{file_name}.json"
    try:
        r = session.get(url, timeout=timeout_s)
        if r.status_code != 200:
            log.warning("Upstream inspection failed", extra={"extra": {"url": url, "status": r.status_code}})
            return False
        doc = r.json()
    except (requests.RequestException, ValueError) as e:
        log.warning("Upstream inspection failed", extra={"extra": {"url": url, "error": str(e)}})
        return False
    bounds = doc.get("bounds")
    info = ArchiveInfo(
        name=str(doc.get("name") or file_name),
        bounds=tuple(float(b) for b in bounds) if bounds else None,
        min_zoom=doc.get("minzoom"),
        max_zoom=doc.get("maxzoom"),
    )
    return inspect_archive(state, info)
