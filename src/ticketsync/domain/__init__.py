"""Domain layer for ticketsync.

Services are imported from their modules (e.g. ticketsync.domain.mapping)
so that the database layer can import entities without loading them.
"""
