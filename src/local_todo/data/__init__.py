"""
Data exchange.

Components:
- validation.py: field validators and backup document checks
- backup.py: export to / import from versioned JSON documents
"""
