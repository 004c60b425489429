"""taskdeck: a single-user task board with list and kanban views."""
