"""
Shared utilities for the External User Service.

This package aggregates common building blocks consumed by the service:

- config: Settings via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry wrapper with exponential backoff

Do not import from service_* packages into shared/.
"""
