"""
External User Service package.

Fetches user records from a remote REST API and caches them in memory.

Structure:
- app.models: pydantic models for users and API envelopes.
- app.clients: HTTP client for the remote API (retry, error mapping).
- app.caching: In-memory TTL cache.
- app.services: Cache-then-fetch facade with pagination aggregation.
- app.main: Wiring and demo harness.
"""
