# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKDECK_APP_NAME": "App display name (default: taskdeck).",
    "TASKDECK_LOG_LEVEL": "Logging level (default: INFO). The console never shows less than WARNING.",
    # Storage
    "TASKDECK_DATA_DIR": "Local data directory for storage and logs (default: .local/taskdeck).",
    "TASKDECK_STORAGE_BACKEND": "sqlite | json (default: sqlite).",
    "TASKDECK_STORAGE_PATH": "Storage file (default: <data_dir>/tasks.sqlite3 or <data_dir>/tasks.json).",
    "TASKDECK_STORAGE_KEY": "Key the task snapshot is stored under (default: tasks).",
    # Initial view selection
    "TASKDECK_DEFAULT_FILTER": "all | not-started | in-progress | on-hold | completed | high-priority | today.",
    "TASKDECK_DEFAULT_SORT": "dueDate | priority | title | status | createdAt (default: dueDate).",
    "TASKDECK_DEFAULT_VIEW": "list | kanban (default: list).",
    # Front end
    "TASKDECK_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
}
