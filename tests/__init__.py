"""
Offline Terrain ImageServer test suite

Structure:
- unit/: Unit tests for individual components (projection, LODs, addressing, archive reader, fetchers)
- integration/: HTTP-level tests of the ImageServer facade and the archive server
"""
