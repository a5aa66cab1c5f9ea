"""
Domain layer containing core business logic and domain services.

Submodules:
- live: Live relay domain logic (sessions, rooms, recordings, catalog).
"""
