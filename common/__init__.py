"""
Shared helpers for both services: config loading, JSON logging, CORS,
Web Mercator math and the tile/extent data model.
"""
