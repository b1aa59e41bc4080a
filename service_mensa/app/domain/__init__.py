"""
Domain layer for the Mensa Service.

Holds the read-only entities (users, groups, mensas, tables, sessions),
their API projections, and the membership check guarding group-scoped
resources.
"""
