"""
Category subsystem.

Components:
- category_models.py: Category dataclass and record mapping
- category_repo.py: CRUD, reorder and the "in use" delete guard
- category_state.py: in-memory mirror kept in display order
"""
