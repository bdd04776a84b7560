"""
Auth Service package for the Taskflow backend.

This package exposes the FastAPI application that authenticates callers
with bearer credentials issued by an external identity provider:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.container: Composition root binding capabilities into the container.
- app.identity: Identity verifier and provider adapters.
- app.controllers: Handlers behind the /auth routes.

Design notes:
- Module import must not perform network calls. All IO happens in route
  handlers or the lifespan startup hook (storage connect).
- Every request re-verifies its credential; nothing is cached.
"""
