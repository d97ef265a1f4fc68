"""
Structured store.

Components:
- schema.py: collection/index declarations, schema version, upgrade hooks
- store.py: aiosqlite-backed Database + Collection (CRUD, index queries, atomic swap)
- defaults.py: one-time seeding of default categories and settings
"""

from .store import Collection, Database

__all__ = ["Collection", "Database"]
