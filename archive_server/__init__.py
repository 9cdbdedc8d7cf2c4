"""
Archive server: read-only MBTiles access over HTTP

- mbtiles.py: MBTilesArchive reader (info, XYZ-addressed tiles, content headers)
- server.py: /tiles/{fileName}/{level}/{col}/{row} and /tiles/{fileName}.json
"""
