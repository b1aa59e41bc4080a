"""
Shared utilities for the Mensa service.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Error kinds, exceptions and their HTTP status mapping
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
