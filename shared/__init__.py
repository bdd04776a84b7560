"""
Shared utilities for the Taskflow backend.

This package aggregates common building blocks consumed by all services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- errors: Closed error taxonomy and error responses
- container: Capability-token dependency container
- database: Lifecycle manager for the shared storage connection
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing setup
- circuit_breaker: Protection for external calls
- base_service: FastAPI service skeleton

Do not import from service packages into shared/.
"""
