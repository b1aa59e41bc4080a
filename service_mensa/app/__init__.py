"""
Mensa Service application package.

Serves read-only data about mensas, their tables, and the groups of users
that share reservation rights. Structure:

- app.main: FastAPI app and routes.
- app.domain: Entities, API models and the group access guard.
- app.adapters: HTTP client for the layout rendering microservice.
- app.persistence: In-memory entity lookup seeded from JSON.
"""
