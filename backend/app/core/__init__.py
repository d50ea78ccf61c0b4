"""
Core infrastructure for the Open Graph parser backend.

- redis_client: Redis async client backing the shared response cache
- dependencies: FastAPI dependency providers and response cache factory
"""
