"""
Core state layer.

Components:
- container.py: shared loading/error/memo protocol for state containers
- state.py: AppState (theme, view selection, connectivity, install prompt)
- preferences.py: settings collection access
- ports.py: Protocols the containers depend on
"""
