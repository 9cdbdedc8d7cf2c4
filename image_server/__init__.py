"""
ImageServer facade: ArcGIS ImageServer REST surface over an offline elevation archive

- Synthesizes the service-info document (extent, LOD pyramid, pixel semantics)
- Translates level/row/col tile requests into the archive's level/col/row
- Relays tiles to the archive server (or reads them in-process) with cache/error semantics

Entry point:
    python -m image_server.service --config config/params.yaml
"""
