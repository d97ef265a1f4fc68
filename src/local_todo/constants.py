# src/local_todo/constants.py

from __future__ import annotations

from typing import Final

# Task
TASK_TITLE_MAX_LENGTH: Final = 200
TASK_DESCRIPTION_MAX_LENGTH: Final = 1000

# Category
CATEGORY_NAME_MAX_LENGTH: Final = 50
DEFAULT_CATEGORY_ID: Final = "personal"
DEFAULT_CATEGORY_ICON: Final = "📋"
DEFAULT_CATEGORY_COLOR: Final = "#3b82f6"

# Views
VIEW_ALL: Final = "all"
VIEW_TODAY: Final = "today"
VIEW_COMPLETED: Final = "completed"
VIEW_CATEGORY: Final = "category"
VIEW_TYPES: Final = (VIEW_ALL, VIEW_TODAY, VIEW_COMPLETED, VIEW_CATEGORY)

# Theme
THEME_LIGHT: Final = "light"
THEME_DARK: Final = "dark"
THEMES: Final = (THEME_LIGHT, THEME_DARK)

# Setting keys
SETTING_THEME: Final = "theme"

# Database
DB_VERSION: Final = 1

# Backup documents
EXPORT_VERSION: Final = 1
SUPPORTED_IMPORT_VERSIONS: Final = frozenset({1})

ERROR_MESSAGES: Final = {
    "database": "Database operation failed, please retry",
    "validation": "Input data is not in the expected format",
    "import": "Import failed, check the backup file",
    "export": "Export failed, please retry",
}
