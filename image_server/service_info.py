from __future__ import annotations

from typing import Any, Dict

from common.geo import TILE_ORIGIN, TILE_SIZE, WEB_MERCATOR_WKID
from image_server.lods import DPI, generate_lods
from image_server.state import StateSnapshot

PIXEL_TYPE = "F32"
BAND_COUNT = 1
CAPABILITIES = "Image,Tile,Mensuration"
MOSAIC_METHODS = "Center,NorthWest,LockRaster,ByAttribute,Nadir,Viewpoint,Seamline"


def describe(cfg: Dict[str, Any], snap: StateSnapshot) -> Dict[str, Any]:
    """
    ImageServer service-info document, rebuilt on every call.

    Before the archive has been inspected the extents are null and the
    pyramid is the single fallback LOD.
    """
    svc = cfg["service"]
    px = cfg["pixel"]
    extent = snap.extent.to_dict() if snap.extent else None
    return {
        "currentVersion": svc["current_version"],
        "serviceDescription": svc["description"],
        "name": svc["name"],
        "description": svc["description"],
        "copyrightText": svc["copyright"],
        "serviceType": "ImageServer",
        "spatialReference": {"wkid": WEB_MERCATOR_WKID, "latestWkid": WEB_MERCATOR_WKID},
        "extent": extent,
        "fullExtent": extent,
        "initialExtent": extent,
        "allowOrigin": "*",
        "pixelSizeX": px["size_x"],
        "pixelSizeY": px["size_y"],
        "bandCount": BAND_COUNT,
        "pixelType": PIXEL_TYPE,
        "minValue": px["min_value"],
        "maxValue": px["max_value"],
        "noDataValue": px["no_data_value"],
        "tileInfo": {
            "rows": TILE_SIZE,
            "cols": TILE_SIZE,
            "dpi": DPI,
            "format": "LERC",
            "compressionQuality": 0,
            "origin": {"x": -TILE_ORIGIN, "y": TILE_ORIGIN},
            "spatialReference": {"wkid": WEB_MERCATOR_WKID},
            "lods": [lod.to_dict() for lod in generate_lods(snap.zoom_range)],
        },
        "capabilities": CAPABILITIES,
        "exportTilesAllowed": False,
        "maxExportTilesCount": 100000,
        "mensurationCapabilities": "Basic",
        "hasHistograms": False,
        "hasColormap": False,
        "hasRasterAttributeTable": False,
        "hasMultidimensions": False,
        "serviceDataType": "esriImageServiceDataTypeElevation",
        "elevationSource": True,
        "cacheType": "MapServer",
        "defaultMosaicMethod": "Center",
        "mosaicMethods": MOSAIC_METHODS,
        "type": "ImageServer",
        "access": "public",
    }


def describe_catalog(cfg: Dict[str, Any]) -> Dict[str, Any]:
    svc = cfg["service"]
    return {
        "currentVersion": svc["current_version"],
        "services": [{"name": svc["name"], "type": "ImageServer"}],
    }
