"""taskboard - shared task board with per-assignee completion."""
