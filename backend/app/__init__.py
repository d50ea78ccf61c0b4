"""
Open Graph Parser Backend Application Package

FastAPI service that fetches a page, extracts its Open Graph metadata (or
falls back to the title and description meta tags), optionally enriches it
with site-specific video data, and caches results with a one-hour sliding
expiration.

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Infrastructure (Redis client, dependency providers)
- models/: Pydantic result models
- services/: Fetching, extraction, enrichment and orchestration
- utils/: Response cache and logging helpers
"""

__version__ = "1.0.0"
__app_name__ = "OpenGraphParser"
