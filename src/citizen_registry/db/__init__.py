"""
citizen_registry.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, seeding and repositories.
"""

# Package marker.
