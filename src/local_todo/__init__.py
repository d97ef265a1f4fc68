"""
Local-first task manager.

Components:
- db/: SQLite-backed structured store (schema, versioning, default data)
- tasks/, categories/: models, repositories and state containers
- core/: shared state-container protocol, app state, preferences, ports
- data/: import/export and validation
- cli/, connectors/: composition root and console surface
"""

__version__ = "0.1.0"
