"""
API Package.

Endpoints are versioned under URL prefixes such as ``/api/v1``:
    - v1/opengraph.py: Open Graph metadata parsing
"""
