"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority) and record mapping
- task_repo.py: typed CRUD + date/status/category queries over the tasks collection
- task_state.py: in-memory mirror with derived views and statistics
"""
